import asyncio
import a2s

from models import ServerStatus


async def get_info(host: str, port: int, timeout: float = 2.5):
    loop = asyncio.get_running_loop()
    addr = (host, port)
    return await asyncio.wait_for(loop.run_in_executor(None, a2s.info, addr), timeout)


class A2SSource:
    """Valve A2S query; bots are counted by the server, not listed."""

    def __init__(self, host: str, port: int, timeout: float = 2.5):
        self.host = host
        self.port = port
        self.timeout = timeout

    async def fetch(self) -> ServerStatus:
        info = await get_info(self.host, self.port, self.timeout)
        return ServerStatus(
            display_name=info.server_name,
            player_count=info.player_count,
            max_players=info.max_players,
            map_name=getattr(info, "map_name", None) or None,
            bot_count=getattr(info, "bot_count", None),
        )
