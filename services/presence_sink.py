import discord
import httpx

from utils.config import ACTIVITY_TYPES

ACTIVITY_TYPE_MAP = {name: getattr(discord.ActivityType, name) for name in ACTIVITY_TYPES}


class DiscordPresenceSink:
    """Pushes presence fields to the logged-in Discord user. Setters raise on failure."""

    def __init__(self, client: discord.Client, http: httpx.AsyncClient, activity_type: str = "watching"):
        self.client = client
        self.http = http
        self.activity_type = ACTIVITY_TYPE_MAP[activity_type]

    @property
    def current_username(self) -> str:
        user = self.client.user
        return user.name if user else ""

    def _user(self) -> discord.ClientUser:
        if self.client.user is None:
            raise RuntimeError("Discord client is not logged in")
        return self.client.user

    async def set_activity(self, text: str) -> None:
        await self.client.change_presence(activity=discord.Activity(type=self.activity_type, name=text))

    async def set_username(self, name: str) -> None:
        await self._user().edit(username=name)

    async def set_avatar(self, url: str) -> None:
        resp = await self.http.get(url)
        resp.raise_for_status()
        await self._user().edit(avatar=resp.content)
