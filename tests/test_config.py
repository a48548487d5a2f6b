import pytest
from pydantic import ValidationError

from src.core.config import Settings


def _settings(**env) -> Settings:
    return Settings(DATABASE_URL="sqlite+aiosqlite:///:memory:", JWT_SECRET="s", _env_file=None, **env)


def test_defaults_follow_the_shop():
    settings = _settings()
    assert settings.shop_timezone == "Asia/Manila"
    assert settings.media_url == "/media"


def test_log_level_is_normalised():
    assert _settings(LOG_LEVEL="debug").log_level == "DEBUG"


@pytest.mark.parametrize("env", [{"SHOP_TIMEZONE": "Mars/Olympus_Mons"}, {"LOG_LEVEL": "chatty"}])
def test_bad_values_are_rejected(env):
    with pytest.raises(ValidationError):
        _settings(**env)
