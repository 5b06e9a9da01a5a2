import logging
from typing import Any, Protocol

import httpx

from models import PlayerRecord, ServerStatus
from utils.config import Settings
from utils.source_query import A2SSource

log = logging.getLogger("status_api")

BATTLEMETRICS_URL = "https://api.battlemetrics.com/servers/{server_id}"


class StatusFetchError(Exception):
    pass


class StatusSource(Protocol):
    async def fetch(self) -> ServerStatus: ...


async def _get_json(http: httpx.AsyncClient, url: str, headers: dict | None = None) -> Any:
    resp = await http.get(url, headers=headers)
    if resp.is_error:
        raise StatusFetchError(f"GET {url} returned HTTP {resp.status_code}")
    try:
        return resp.json()
    except ValueError as e:
        raise StatusFetchError(f"GET {url} returned invalid JSON: {e}") from e


def _int(v: Any) -> int:
    if isinstance(v, bool):
        return int(v)
    return int(v or 0)


class BattleMetricsSource:
    def __init__(self, http: httpx.AsyncClient, server_id: str, token: str = ""):
        self.http = http
        self.server_id = server_id
        self.token = token

    async def fetch(self) -> ServerStatus:
        url = BATTLEMETRICS_URL.format(server_id=self.server_id)
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        log.debug("Fetching server status from battlemetrics (%s)", self.server_id)
        body = await _get_json(self.http, url, headers)
        try:
            attrs = body["data"]["attributes"]
            details = attrs.get("details") or {}
            return ServerStatus(
                display_name=str(attrs["name"]),
                player_count=_int(attrs["players"]),
                max_players=_int(attrs.get("maxPlayers")),
                map_name=details.get("map") or None,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StatusFetchError(f"Unexpected battlemetrics payload: {e!r}") from e


def parse_player(p: dict) -> PlayerRecord:
    return PlayerRecord(
        is_bot=bool(p.get("isBot", False)),
        ping=_int(p.get("ping")),
        score=_int(p.get("score")),
        kills=_int(p.get("kills")),
        deaths=_int(p.get("deaths")),
        name=str(p.get("name") or ""),
    )


class ServerListSource:
    def __init__(self, http: httpx.AsyncClient, ip: str, port: int, url_template: str):
        self.http = http
        self.url = url_template.format(ip=ip, port=port)

    async def fetch(self) -> ServerStatus:
        log.debug("Fetching server status from %s", self.url)
        body = await _get_json(self.http, self.url)
        try:
            players = body.get("players")
            return ServerStatus(
                display_name=str(body["name"]),
                player_count=_int(body["numPlayers"]),
                max_players=_int(body["maxPlayers"]),
                map_name=body.get("mapName") or None,
                players=tuple(parse_player(p) for p in players) if players is not None else None,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StatusFetchError(f"Unexpected server list payload: {e!r}") from e


def build_source(settings: Settings, http: httpx.AsyncClient) -> StatusSource:
    if settings.STATUS_SOURCE == "battlemetrics":
        return BattleMetricsSource(http, settings.SERVER_ID, settings.BATTLEMETRICS_TOKEN)
    if settings.STATUS_SOURCE == "a2s":
        return A2SSource(settings.SERVER_IP, settings.SERVER_PORT)
    return ServerListSource(http, settings.SERVER_IP, settings.SERVER_PORT, settings.SERVERLIST_URL)
