import pytest

from config import ConfigError, Settings


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("CHAT_PAGE_SIZE", raising=False)
    monkeypatch.delenv("JWT_ALGORITHM", raising=False)

    settings = Settings()

    assert settings.CHAT_PAGE_SIZE == 20
    assert settings.MESSAGE_PAGE_SIZE == 50
    assert settings.JWT_ALGORITHM == "HS256"


def test_settings_convert_types(monkeypatch):
    monkeypatch.setenv("MESSAGE_PAGE_SIZE", "25")

    assert Settings().MESSAGE_PAGE_SIZE == 25


def test_missing_required_setting(monkeypatch):
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)

    with pytest.raises(ConfigError) as exc_info:
        Settings()

    assert "JWT_SECRET_KEY" in str(exc_info.value)


@pytest.mark.parametrize("value", ["0", "-3", "twenty"])
def test_invalid_page_size(monkeypatch, value):
    monkeypatch.setenv("CHAT_PAGE_SIZE", value)

    with pytest.raises(ConfigError):
        Settings()
