import pytest
from fastapi.testclient import TestClient

from desiflash.api.main import app
from desiflash.providers.codec import b64url_encode, rot13
from desiflash.providers.embeds.juicycodes import SYMBOLS


def juicy_encode(script: str, salt_chars: str = "eee") -> str:
    """Build a _juicycodes payload that decodes back to `script`."""
    salt = int("".join(str(ord(ch) - 100) for ch in salt_chars))
    digits = "".join(f"{ord(ch) + salt:04d}" for ch in script)
    # letters are noise the decoder drops after rot13
    symbols = "".join(SYMBOLS[int(d)] + ("Q" if i % 3 == 0 else "") for i, d in enumerate(digits))
    return b64url_encode(rot13(symbols)) + salt_chars


def split_literals(payload: str, size: int = 16) -> str:
    """Render payload as `"abc" + 'def' + ...` the way embed pages do."""
    parts = [payload[i:i + size] for i in range(0, len(payload), size)]
    return " + ".join(f'"{p}"' if i % 2 == 0 else f"'{p}'" for i, p in enumerate(parts))


@pytest.fixture
def juicy():
    return juicy_encode


@pytest.fixture
def literals():
    return split_literals


@pytest.fixture
def client():
    return TestClient(app)
