import asyncio
import datetime as dt
import logging
import os
from typing import Optional

import discord
import httpx
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from utils.config import Settings, load_settings
from services.presence_sink import DiscordPresenceSink
from services.presence_task import PresenceTasks, StatusPoller
from utils.status_api import build_source

# ----- logging
logging.basicConfig(level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))
log = logging.getLogger("main")

# ----- FastAPI
app = FastAPI(title="Game Server Status Bot")


class PlayerOut(BaseModel):
    name: str
    is_bot: bool
    ping: int
    score: int


class StatusOut(BaseModel):
    source: str
    server: Optional[str]
    map: Optional[str]
    players: int
    max_players: int
    player_list: Optional[list[PlayerOut]]
    activity: str
    username: Optional[str]
    avatar_key: str
    last_updated: Optional[dt.datetime]
    last_error: Optional[str]
    cycles: int


@app.get("/health")
async def health():
    return {"ok": True}


@app.get("/status", response_model=StatusOut)
async def status():
    poller = bot.poller
    if poller is None:
        raise HTTPException(status_code=503, detail="Status poller not running")
    st = poller.state
    s = poller.last_status
    return {
        "source": bot.settings.STATUS_SOURCE,
        "server": s.display_name if s else None,
        "map": s.map_name if s else None,
        "players": s.player_count if s else 0,
        "max_players": s.max_players if s else 0,
        "player_list": [
            {"name": p.name, "is_bot": p.is_bot, "ping": p.ping, "score": p.score} for p in s.players
        ] if s and s.players is not None else None,
        "activity": st.last_activity_text,
        "username": poller.last_fields.desired_username if poller.last_fields else None,
        "avatar_key": st.last_avatar_key,
        "last_updated": poller.last_updated,
        "last_error": poller.last_error,
        "cycles": poller.cycles,
    }


# ----- Discord bot
class StatusBot(discord.Client):
    def __init__(self):
        # presence only, no privileged intents required
        intents = discord.Intents.none()
        intents.guilds = True
        super().__init__(intents=intents)
        self.settings: Optional[Settings] = None
        self.http_client: Optional[httpx.AsyncClient] = None
        self.poller: Optional[StatusPoller] = None
        self.presence_tasks: Optional[PresenceTasks] = None

    def configure(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self.settings = settings
        self.http_client = http_client
        sink = DiscordPresenceSink(self, http_client, settings.ACTIVITY_TYPE)
        self.poller = StatusPoller(
            build_source(settings, http_client),
            sink,
            policy=settings.BOT_TREATMENT,
            update_username=settings.UPDATE_USERNAME,
            avatar_url=settings.map_image_url if settings.update_avatar else None,
        )

    async def setup_hook(self) -> None:
        # loop waits for on_ready before its first tick
        self.presence_tasks = PresenceTasks(self, self.poller, self.settings.UPDATE_INTERVAL_MINUTES)

    async def on_ready(self):
        log.info("Logged in as %s", self.user)


bot = StatusBot()


# ----- lifecycle
@app.on_event("startup")
async def on_startup():
    log.info("Starting status bot")
    settings = load_settings()
    logging.getLogger().setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    token = settings.DISCORD_BOT_TOKEN
    if not token:
        log.error("DISCORD_BOT_TOKEN missing")
        raise SystemExit(1)

    bot.configure(settings, httpx.AsyncClient(headers={"User-Agent": "gameserver-status-bot"}))
    log.info("Logging into Discord using token")
    # bad credentials end the process here
    await bot.login(token)

    async def runner():
        try:
            await bot.connect()
        except Exception as e:
            log.exception("Discord failed: %s", e)
            raise

    # run discord in background
    loop = asyncio.get_running_loop()
    loop.create_task(runner())


@app.on_event("shutdown")
async def on_shutdown():
    log.info("Shutting down…")
    if bot.presence_tasks:
        bot.presence_tasks.stop()
    await bot.close()
    if bot.http_client:
        await bot.http_client.aclose()
