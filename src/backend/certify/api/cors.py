"""CORS for browser-facing routes.

`/mass-import` and `/reminders/expiry` answer preflights and set their own
CORS headers (permissive and origin allow-listed respectively), so the
app-wide middleware passes those paths straight through.
"""

from typing import Iterable

from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send


class RouteCORSMiddleware(CORSMiddleware):
    def __init__(self, app: ASGIApp, *, skip_paths: Iterable[str] = (), **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.skip_paths = frozenset(p.rstrip("/") for p in skip_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].rstrip("/") in self.skip_paths:
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)
