"""NumberQuest JSON-lines server entry point.

Usage: python -m numberquest.server

Reads JSON requests from stdin (one per line), writes JSON responses to stdout.
All logging goes to stderr to keep the protocol clean.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Optional

from numberquest.config.settings import Settings

from .handler import ServerHandler
from .protocol import Response

logger = logging.getLogger("numberquest.server")


def _reject_constant(name: str):
    raise ValueError(f"non-standard constant {name}")


async def handle_line(handler: ServerHandler, line_str: str) -> str:
    """Turn one request line into exactly one response line."""
    try:
        msg = json.loads(line_str, parse_constant=_reject_constant)
    except ValueError as e:
        return Response(id=0, error=f"Invalid JSON: {e}").to_json_line()

    req_id = msg.get("id", 0) if isinstance(msg, dict) else 0
    if isinstance(req_id, bool) or not isinstance(req_id, (int, str)):
        req_id = 0
    try:
        result = await handler.dispatch(msg)
        return Response(id=req_id, result=result).to_json_line()
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("request %s rejected: %s", req_id, e)
        return Response.failure(req_id, e).to_json_line()
    except Exception as e:
        logger.exception("request %s failed", req_id)
        return Response.failure(req_id, e).to_json_line()


async def serve(settings: Optional[Settings] = None) -> None:
    loop = asyncio.get_running_loop()

    def write_line(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    handler = ServerHandler(settings=settings)
    logger.info("numberquest-server: ready")

    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    while True:
        line = await reader.readline()
        if not line:
            break  # stdin closed

        line_str = line.decode("utf-8", errors="replace").strip()
        if not line_str:
            continue

        write_line(await handle_line(handler, line_str))


def main() -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(serve())


if __name__ == "__main__":
    main()
