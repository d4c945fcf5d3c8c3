import pytest
from pydantic import ValidationError

from carenotes.core.config import Settings


def test_missing_secret_aborts(monkeypatch):
    monkeypatch.delenv("AUTH_SECRET", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_short_secret_aborts():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, auth_secret="too-short")


def test_blank_secret_aborts():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, auth_secret=" " * 40)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SIGN_IN_PATH", "/login")
    monkeypatch.setenv("NOTIFICATION_CHECK_HOUR", "7")
    config = Settings(_env_file=None, auth_secret="x" * 32)
    assert config.sign_in_path == "/login"
    assert config.notification_check_hour == 7


def test_pin_hash_rounds_bounds():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, auth_secret="x" * 32, pin_hash_rounds=2)
