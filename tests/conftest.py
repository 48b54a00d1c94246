import os
import sys
from pathlib import Path
import pytest

# Ensure we can import modules from src/
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture()
def env():
    # Variables visible to $name substitution in parser tests
    return {"a": "var1", "b": "var2", "c": "var3"}


@pytest.fixture()
def parser(env):
    from ops import Parser
    return Parser(lookup=env.get)


@pytest.fixture()
def clean_environ(monkeypatch):
    # Keep the front end's configuration variables out of the way
    monkeypatch.delenv("MINISH_MAX_LENGTH", raising=False)
    monkeypatch.delenv("MINISH_PROMPT", raising=False)
    return os.environ
