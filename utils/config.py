import os
from dataclasses import dataclass
from typing import Mapping

from models import BotCountPolicy

SOURCES = ("battlemetrics", "serverlist", "a2s")
ACTIVITY_TYPES = ("playing", "watching", "listening", "competing")
DEFAULT_SERVERLIST_URL = "https://api.bflist.io/bf2/v1/servers/{ip}:{port}"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigError(ValueError):
    pass


def _bool(key: str, s: str | None) -> bool:
    v = (s or "").strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigError(f"{key} must be a boolean, got {s!r}")


def _int(key: str, s: str | None, default: int) -> int:
    if s is None or not s.strip():
        return default
    try:
        return int(s.strip())
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {s!r}") from None


def _choice(key: str, s: str | None, choices: tuple[str, ...], default: str) -> str:
    v = (s or default).strip().lower()
    if v not in choices:
        raise ConfigError(f"{key} must be one of {', '.join(choices)}, got {s!r}")
    return v


@dataclass(frozen=True)
class Settings:
    # Discord
    DISCORD_BOT_TOKEN: str = ""
    UPDATE_USERNAME: bool = False
    ACTIVITY_TYPE: str = "watching"
    MAP_IMAGE_URL: str = ""

    # Status source
    STATUS_SOURCE: str = "serverlist"
    SERVER_ID: str = ""
    BATTLEMETRICS_TOKEN: str = ""
    SERVER_IP: str = ""
    SERVER_PORT: int = 0
    SERVERLIST_URL: str = DEFAULT_SERVERLIST_URL
    BOT_TREATMENT: BotCountPolicy = BotCountPolicy.IGNORE
    UPDATE_INTERVAL_MINUTES: int = 2

    # HTTP
    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    @property
    def update_avatar(self) -> bool:
        return bool(self.MAP_IMAGE_URL)

    def map_image_url(self, key: str) -> str:
        return self.MAP_IMAGE_URL.format(key=key)


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build the settings once from environment-style key/values."""
    env = os.environ if env is None else env
    get = env.get

    server_id = get("SERVER_ID", "").strip()
    source = _choice(
        "STATUS_SOURCE", get("STATUS_SOURCE"), SOURCES,
        "battlemetrics" if server_id else "serverlist",
    )
    try:
        policy = BotCountPolicy((get("BOT_TREATMENT") or "ignore").strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in BotCountPolicy)
        raise ConfigError(f"BOT_TREATMENT must be one of {allowed}, got {get('BOT_TREATMENT')!r}") from None

    s = Settings(
        DISCORD_BOT_TOKEN=get("DISCORD_BOT_TOKEN", ""),
        UPDATE_USERNAME=_bool("UPDATE_USERNAME", get("UPDATE_USERNAME")),
        ACTIVITY_TYPE=_choice("ACTIVITY_TYPE", get("ACTIVITY_TYPE"), ACTIVITY_TYPES, "watching"),
        MAP_IMAGE_URL=get("MAP_IMAGE_URL", "").strip(),
        STATUS_SOURCE=source,
        SERVER_ID=server_id,
        BATTLEMETRICS_TOKEN=get("BATTLEMETRICS_TOKEN", ""),
        SERVER_IP=get("SERVER_IP", "").strip(),
        SERVER_PORT=_int("SERVER_PORT", get("SERVER_PORT"), 0),
        SERVERLIST_URL=get("SERVERLIST_URL", "").strip() or DEFAULT_SERVERLIST_URL,
        BOT_TREATMENT=policy,
        UPDATE_INTERVAL_MINUTES=_int("UPDATE_INTERVAL_MINUTES", get("UPDATE_INTERVAL_MINUTES"), 2),
        HTTP_HOST=get("HTTP_HOST", "0.0.0.0"),
        HTTP_PORT=_int("HTTP_PORT", get("HTTP_PORT"), 8080),
        LOG_LEVEL=get("LOG_LEVEL", "INFO"),
    )

    if s.STATUS_SOURCE == "battlemetrics" and not s.SERVER_ID:
        raise ConfigError("SERVER_ID is required for the battlemetrics source")
    if s.STATUS_SOURCE in ("serverlist", "a2s") and not (s.SERVER_IP and s.SERVER_PORT):
        raise ConfigError(f"SERVER_IP and SERVER_PORT are required for the {s.STATUS_SOURCE} source")
    if s.UPDATE_INTERVAL_MINUTES < 1:
        raise ConfigError("UPDATE_INTERVAL_MINUTES must be at least 1")
    if s.MAP_IMAGE_URL:
        if "{key}" not in s.MAP_IMAGE_URL:
            raise ConfigError("MAP_IMAGE_URL must contain a {key} placeholder")
        try:
            s.map_image_url("map_test")
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigError(f"MAP_IMAGE_URL is not a valid template: {e!r}") from None
    return s
