"""Tests for the character scanner."""

import pytest  # type: ignore

from errors import ErrorKind, ParseError
from scanner import MAX_TOKEN_LENGTH, Scanner, Token, TokenKind


def ident(text):
    return Token(TokenKind.IDENTIFIER, text)


END = Token(TokenKind.END)
SEP = Token(TokenKind.SEPARATOR)


def tokens(text, env=None, max_length=MAX_TOKEN_LENGTH):
    lookup = (env or {}).get
    return list(Scanner(text, lookup, max_length))


class TestDispatch:
    def test_words_and_end(self):
        assert tokens("ls -l") == [ident("ls"), ident("-l"), END]

    def test_operators_split_words(self):
        assert tokens("a&b>c<d|e;f\ng") == [
            ident("a"), Token(TokenKind.AMPERSAND),
            ident("b"), Token(TokenKind.OUTPUT_REDIRECTION),
            ident("c"), Token(TokenKind.INPUT_REDIRECTION),
            ident("d"), Token(TokenKind.PIPE),
            ident("e"), SEP,
            ident("f"), SEP,
            ident("g"), END,
        ]

    def test_blanks_are_skipped(self):
        assert tokens(" \t ls\t\t-a  ") == [ident("ls"), ident("-a"), END]

    def test_empty_input(self):
        assert tokens("") == [END]

    def test_end_repeats(self):
        scanner = Scanner("x", {}.get)
        assert scanner.next_token() == ident("x")
        assert scanner.next_token() == END
        assert scanner.next_token() == END


class TestQuotingAndEscapes:
    def test_quote_keeps_operators_and_blanks(self):
        assert tokens("'a b;|&<>#'") == [ident("a b;|&<>#"), END]

    def test_quote_joins_into_identifier(self):
        assert tokens("a'b'c") == [ident("abc"), END]

    def test_empty_quote_is_an_empty_word(self):
        assert tokens("''") == [ident(""), END]

    def test_quote_spans_lines(self):
        scanner = Scanner("echo 'x\ny'", {}.get)
        assert scanner.next_token() == ident("echo")
        assert scanner.next_token() == ident("x\ny")
        assert scanner.cursor.line == 1
        assert scanner.cursor.column == 2

    def test_dollar_is_literal_in_quotes(self):
        assert tokens("'$a'", {"a": "var1"}) == [ident("$a"), END]

    def test_escape(self):
        assert tokens(r"a\ b \\ \;") == [ident("a b"), ident("\\"), ident(";"), END]

    def test_escaped_newline(self):
        scanner = Scanner("a\\\nb", {}.get)
        assert scanner.next_token() == ident("a\nb")
        assert scanner.cursor.line == 1

    def test_unterminated_quote(self):
        with pytest.raises(ParseError) as exc:
            tokens("echo 'abc")
        assert exc.value.kind is ErrorKind.UNEXPECTED_EOF
        assert (exc.value.line, exc.value.column) == (0, 9)

    def test_unterminated_escape(self):
        with pytest.raises(ParseError) as exc:
            tokens("x\\")
        assert exc.value.kind is ErrorKind.UNEXPECTED_EOF
        assert exc.value.column == 2


class TestComments:
    def test_comment_hidden_from_grammar(self):
        assert tokens("ls # hi there\nwc") == [ident("ls"), SEP, ident("wc"), END]

    def test_raw_read_returns_comment(self):
        scanner = Scanner("ls # hi\n", {}.get)
        assert scanner.read() == ident("ls")
        assert scanner.read() == Token(TokenKind.COMMENT, " hi")
        assert scanner.read() == SEP
        assert scanner.read() == END

    def test_hash_ends_identifier(self):
        assert tokens("abc#def") == [ident("abc"), END]

    def test_escaped_hash(self):
        assert tokens(r"a\#b") == [ident("a#b"), END]


class TestSubstitution:
    ENV = {"a": "var1", "b": "var2", "c": "var3", "sp": "x y"}

    def test_plain_and_braced(self):
        assert tokens("$a ${b}", self.ENV) == [ident("var1"), ident("var2"), END]

    def test_concatenation(self):
        assert tokens("$a${b}$c", self.ENV) == [ident("var1var2var3"), END]

    def test_braced_followed_by_text(self):
        assert tokens("${a}/bin", self.ENV) == [ident("var1/bin"), END]

    def test_name_runs_to_delimiter(self):
        # '-' does not end a name, so the variable looked up is "a-y"
        assert tokens("x$a-y", self.ENV) == [ident("x"), END]

    def test_value_is_spliced_verbatim(self):
        assert tokens("$sp", self.ENV) == [ident("x y"), END]

    def test_unknown_variable_is_empty_word(self):
        assert tokens("$nope", self.ENV) == [ident(""), END]

    def test_unknown_variable_keeps_other_text(self):
        assert tokens("pre${nope}post", self.ENV) == [ident("prepost"), END]

    def test_closing_brace_without_opening(self):
        assert tokens("$a}", self.ENV) == [ident("var1}"), END]

    def test_variable_then_quote(self):
        assert tokens("$c'yeah'", self.ENV) == [ident("var3yeah"), END]

    def test_variable_before_operator(self):
        assert tokens("$a>$b", self.ENV) == [
            ident("var1"), Token(TokenKind.OUTPUT_REDIRECTION), ident("var2"), END,
        ]

    def test_unclosed_brace(self):
        with pytest.raises(ParseError) as exc:
            tokens("${a b}", self.ENV)
        assert exc.value.kind is ErrorKind.BAD_SUBSTITUTION
        assert exc.value.column == 3

    def test_unclosed_brace_at_end(self):
        with pytest.raises(ParseError) as exc:
            tokens("${a", self.ENV)
        assert exc.value.kind is ErrorKind.BAD_SUBSTITUTION

    def test_lookup_called_once_per_substitution(self):
        seen = []

        def lookup(name):
            seen.append(name)
            return "v"

        assert tokens("$x$y ${z}", {}) == [ident(""), ident(""), END]
        list(Scanner("$x$y ${z}", lookup))
        assert seen == ["x", "y", "z"]


class TestOverflow:
    def test_identifier_at_capacity(self):
        assert tokens("aaaa", max_length=4) == [ident("aaaa"), END]

    def test_identifier_over_capacity(self):
        with pytest.raises(ParseError) as exc:
            tokens("aaaaa", max_length=4)
        assert exc.value.kind is ErrorKind.OVERFLOW
        assert exc.value.column == 4

    def test_substituted_value_over_capacity(self):
        with pytest.raises(ParseError) as exc:
            tokens("$v", {"v": "12345"}, max_length=4)
        assert exc.value.kind is ErrorKind.OVERFLOW

    def test_variable_name_over_capacity(self):
        with pytest.raises(ParseError) as exc:
            tokens("$abcde", max_length=4)
        assert exc.value.kind is ErrorKind.OVERFLOW

    def test_buffers_reset_between_tokens(self):
        assert tokens("aaaa bbbb", max_length=4) == [ident("aaaa"), ident("bbbb"), END]

    def test_default_capacity(self):
        word = "x" * MAX_TOKEN_LENGTH
        assert tokens(word) == [ident(word), END]
        with pytest.raises(ParseError) as exc:
            tokens(word + "x")
        assert exc.value.kind is ErrorKind.OVERFLOW
        assert exc.value.column == MAX_TOKEN_LENGTH


class TestCursor:
    def test_lines_and_columns(self):
        scanner = Scanner("ls\n  wc", {}.get)
        scanner.next_token()
        assert (scanner.cursor.line, scanner.cursor.column) == (0, 2)
        assert scanner.next_token() == SEP
        assert (scanner.cursor.line, scanner.cursor.column) == (1, 0)
        scanner.next_token()
        assert (scanner.cursor.line, scanner.cursor.column) == (1, 4)
