import os
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

os.environ.setdefault("QR_TOKEN_SECRET", "test-qr-token-secret-0123456789")
os.environ.setdefault("SECRET_KEY", "x" * 32)

from config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
