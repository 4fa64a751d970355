"""Screenshot publishing.

Captured images are written under `<asset root>/screenshots/` and served by a
small aiohttp app running on the server's own event loop. The app only starts
when the first URL-mode screenshot needs it.
"""

from __future__ import annotations

import asyncio
import logging
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from aiohttp import web

if TYPE_CHECKING:
    from .config import HubConfig

logger = logging.getLogger("mcp.hub.assets")

_NAME_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_-]{0,127}\.[a-z]{2,4}$")

BANNER = "Static asset server running. Use /screenshots/<file>."


def content_type_for(name: str) -> str:
    ext = Path(name).suffix.lower()
    return "image/jpeg" if ext in {".jpg", ".jpeg"} else "image/png"


def make_file_name(ext: str) -> str:
    safe_ext = re.sub(r"[^a-z0-9]+", "", (ext or "png").lower()) or "png"
    return f"shot_{int(time.time() * 1000)}_{secrets.token_hex(4)}.{safe_ext}"


@dataclass(frozen=True)
class PublishedAsset:
    name: str
    path: str
    url: str
    bytes: int
    mime_type: str


class AssetPublisher:
    def __init__(
        self,
        root: Path | str,
        *,
        host: str = "127.0.0.1",
        port: int = 4001,
        public_host: str = "localhost",
    ) -> None:
        self.root = Path(root).resolve()
        self.host = host
        self.port = int(port)
        self.public_host = public_host
        self._runner: web.AppRunner | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: HubConfig) -> AssetPublisher:
        return cls(
            config.asset_dir,
            host=config.asset_host,
            port=config.asset_port,
            public_host=config.asset_public_host,
        )

    @property
    def screenshot_dir(self) -> Path:
        return self.root / "screenshots"

    @property
    def base_url(self) -> str:
        return f"http://{self.public_host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._runner is not None

    def url_for(self, name: str) -> str:
        return f"{self.base_url}/screenshots/{name}"

    def ensure_dirs(self) -> None:
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)

    # ── HTTP ────────────────────────────────────────────────────────────────

    async def handle_index(self, request: web.Request) -> web.Response:
        return web.Response(text=BANNER, content_type="text/plain", charset="utf-8")

    async def handle_screenshot(self, request: web.Request) -> web.Response:
        name = request.match_info.get("name", "")
        if not _NAME_RE.match(name):
            return web.Response(status=404, text="Not found")
        path = self.screenshot_dir / name
        if not path.is_file():
            return web.Response(status=404, text="Not found")
        body = await asyncio.to_thread(path.read_bytes)
        return web.Response(body=body, content_type=content_type_for(name))

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self.handle_index)
        app.router.add_get("/screenshots/{name}", self.handle_screenshot)
        return app

    async def ensure_server(self) -> None:
        async with self._lock:
            if self._runner is not None:
                return
            runner = web.AppRunner(self.build_app(), access_log=None)
            await runner.setup()
            site = web.TCPSite(runner, self.host, self.port)
            try:
                await site.start()
            except OSError:
                await runner.cleanup()
                raise
            if self.port == 0:
                # Ephemeral bind: report the port the OS picked.
                for address in runner.addresses:
                    if isinstance(address, tuple) and len(address) >= 2:
                        self.port = int(address[1])
                        break
            self._runner = runner
            logger.info("asset_server_started url=%s/ dir=%s", self.base_url, self.screenshot_dir)

    async def warm_up(self) -> None:
        """Create the asset directories and start the HTTP server once."""
        self.ensure_dirs()
        await self.ensure_server()

    async def publish(self, data: bytes, ext: str = "png") -> PublishedAsset:
        """Persist one screenshot and return its public URL."""
        await self.warm_up()
        name = make_file_name(ext)
        path = self.screenshot_dir / name
        await asyncio.to_thread(path.write_bytes, data)
        logger.info("asset_published name=%s bytes=%d", name, len(data))
        return PublishedAsset(
            name=name,
            path=str(path),
            url=self.url_for(name),
            bytes=len(data),
            mime_type=content_type_for(name),
        )

    async def close(self) -> None:
        async with self._lock:
            runner, self._runner = self._runner, None
        if runner is not None:
            await runner.cleanup()
            logger.info("asset_server_stopped")


__all__ = ["AssetPublisher", "PublishedAsset", "content_type_for", "make_file_name"]
