"""Root conftest - shared test configuration."""

import os

import pytest

# Tests never talk to a real mail server or read a developer's logo
for var in ("SMTP_HOST", "SMTP_PORT", "SMTP_SECURE", "SMTP_USER", "SMTP_PASS", "EMAIL_FROM"):
    os.environ.pop(var, None)
os.environ.setdefault("ASSET_PATH", "./tests/.no-assets")
os.environ.setdefault("DEBUG", "false")


@pytest.fixture(autouse=True)
def _fresh_settings():
    from licenseshop.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
