import datetime as dt
import logging
from typing import Awaitable, Callable, Optional, Protocol

import discord
from discord.ext import tasks

from models import BotCountPolicy, DisplayFields, PresenceState, ServerStatus
from services.display import format_display
from utils.status_api import StatusSource

log = logging.getLogger("presence")


class PresenceSink(Protocol):
    @property
    def current_username(self) -> str: ...

    async def set_activity(self, text: str) -> None: ...

    async def set_username(self, name: str) -> None: ...

    async def set_avatar(self, url: str) -> None: ...


class StatusPoller:
    """One fetch-format-compare-push cycle per call to :meth:`run_cycle`.

    Cycle errors (fetch, formatting) are logged and swallowed. Each of the
    three presence fields is pushed independently; a failed push is logged
    and leaves the tracked value untouched so the next cycle retries it.
    """

    def __init__(
        self,
        source: StatusSource,
        sink: PresenceSink,
        policy: BotCountPolicy = BotCountPolicy.IGNORE,
        update_username: bool = False,
        avatar_url: Optional[Callable[[str], str]] = None,
    ):
        self.source = source
        self.sink = sink
        self.policy = policy
        self.update_username = update_username
        self.avatar_url = avatar_url
        self.state = PresenceState()
        self._in_flight = False

        # read by the /status endpoint only
        self.last_status: Optional[ServerStatus] = None
        self.last_fields: Optional[DisplayFields] = None
        self.last_updated: Optional[dt.datetime] = None
        self.last_error: Optional[str] = None
        self.cycles = 0

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def run_cycle(self) -> bool:
        """Return True when the fetch succeeded and all pushes were attempted."""
        if self._in_flight:
            log.warning("Previous status update still running, skipping this tick")
            return False
        self._in_flight = True
        try:
            return await self._cycle()
        finally:
            self._in_flight = False

    async def _cycle(self) -> bool:
        log.info("Updating game server status")
        self.cycles += 1
        try:
            status = await self.source.fetch()
            fields = format_display(status, self.policy)
        except Exception as e:
            self.last_error = f"{type(e).__name__}: {e}"
            log.error("Failed to update game server status: %s", self.last_error)
            return False

        self.last_status = status
        self.last_fields = fields
        self.last_updated = dt.datetime.now(dt.timezone.utc)
        self.last_error = None

        await self._push_activity(fields)
        await self._push_username(fields)
        await self._push_avatar(fields)
        log.debug("Game server status update complete")
        return True

    async def _push(self, what: str, push: Callable[[], Awaitable[None]]) -> bool:
        try:
            await push()
        except Exception as e:
            log.error("Failed to update %s: %s", what, e)
            return False
        return True

    async def _push_activity(self, fields: DisplayFields) -> None:
        text = fields.activity_text
        if text == self.state.last_activity_text:
            log.debug("Activity text is unchanged, no update required")
            return
        log.debug("Updating activity to %r", text)
        if await self._push("activity", lambda: self.sink.set_activity(text)):
            self.state.last_activity_text = text

    async def _push_username(self, fields: DisplayFields) -> None:
        if not self.update_username:
            return
        name = fields.desired_username
        if name == self.sink.current_username:
            log.debug("Username matches server name, no update required")
            return
        log.debug("Updating username to %r", name)
        await self._push("username", lambda: self.sink.set_username(name))

    async def _push_avatar(self, fields: DisplayFields) -> None:
        key = fields.map_image_key
        if key is None or self.avatar_url is None:
            return
        if key == self.state.last_avatar_key:
            log.debug("Avatar matches current map, no update required")
            return

        async def push():
            url = self.avatar_url(key)
            log.debug("Updating avatar to %s", url)
            await self.sink.set_avatar(url)

        if await self._push("avatar", push):
            self.state.last_avatar_key = key


class PresenceTasks:
    def __init__(self, bot: discord.Client, poller: StatusPoller, minutes: float = 2):
        self.bot = bot
        self.poller = poller
        self.loop.change_interval(minutes=minutes)
        self.loop.start()

    @tasks.loop(minutes=2)
    async def loop(self):
        try:
            await self.poller.run_cycle()
        except Exception:
            log.exception("Unexpected error in status update loop")

    @loop.before_loop
    async def before_loop(self):
        await self.bot.wait_until_ready()
        log.info("Client is ready, starting update task")

    def stop(self):
        self.loop.cancel()
