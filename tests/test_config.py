import pytest
from pydantic import ValidationError

from app.hub.core.config import Settings


def test_temp_password_shorter_than_policy_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        Settings(_env_file=None, TEMP_PASSWORD_LENGTH=8, PASSWORD_MIN_LENGTH=12)
    assert "TEMP_PASSWORD_LENGTH (8) must be at least PASSWORD_MIN_LENGTH (12)" in str(excinfo.value)


def test_temp_password_policy_from_env(monkeypatch):
    monkeypatch.setenv("TEMP_PASSWORD_LENGTH", "20")
    monkeypatch.setenv("PASSWORD_MIN_LENGTH", "20")
    settings = Settings(_env_file=None)
    assert settings.TEMP_PASSWORD_LENGTH == settings.PASSWORD_MIN_LENGTH == 20

    monkeypatch.setenv("PASSWORD_MIN_LENGTH", "21")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
