"""
Liveness endpoint for the hosting platform's health check.

GET / always answers 200 with a static body; it says nothing about the
Discord connection.
"""

from __future__ import annotations

import logging

from aiohttp import web


logger = logging.getLogger(__name__)

KEEPALIVE_BODY = "Bot is awake and running!"


async def handle_root(request: web.Request) -> web.Response:
    return web.Response(text=KEEPALIVE_BODY)


def build_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/", handle_root)
    return app


async def start_keepalive(port: int) -> web.AppRunner:
    runner = web.AppRunner(build_app())
    await runner.setup()
    site = web.TCPSite(runner, host="0.0.0.0", port=port)
    await site.start()
    logger.info("Keep-alive/health check server listening on port %s", port)
    return runner
