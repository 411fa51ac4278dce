from __future__ import annotations
import asyncio, json, logging
from contextlib import suppress
from typing import Callable, Optional, Tuple
import websockets
from pydantic import ValidationError
from ..config import Config
from ..errors import GazeReadingError
from .events import ErrorMessage, EventMessage, GazeMessage, StatusMessage
from .session import ReadingSession

logger = logging.getLogger(__name__)

class Connection:
    """
    Protocol state for one observed party: gaze messages in, event/status
    JSON out through ``outbox``. Bad input is answered with an error message;
    the connection stays usable.
    """
    def __init__(self, cfg: Config, screen: Optional[Tuple[int, int]] = None, name: str = "peer"):
        self.screen = screen
        self.session = ReadingSession(cfg, name=name)
        self.outbox: "asyncio.Queue[str]" = asyncio.Queue()
        self.session.subscribe(
            on_event=lambda ev: self.outbox.put_nowait(EventMessage(event=ev).model_dump_json()),
            on_status=lambda st: self.outbox.put_nowait(StatusMessage(status=st).model_dump_json()),
        )

    def _error(self, msg: str, **extra):
        self.outbox.put_nowait(ErrorMessage(error=msg, extra=extra).model_dump_json())

    def handle(self, raw: str | bytes):
        try:
            obj = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self._error(f"invalid json: {e}")
            return
        if not isinstance(obj, dict) or obj.get("type") != "gaze":
            logger.debug("%s: ignoring message %r", self.session.name, obj)
            return
        try:
            s = GazeMessage.model_validate(obj).to_sample(self.screen)
            self.session.ingest(s.x, s.y, s.t)
        except ValidationError as e:
            self._error("malformed gaze message", detail=str(e))
        except GazeReadingError as e:
            self._error(str(e))

async def _pump(conn: Connection, websocket, on_line: Optional[Callable[[str], None]]):
    while True:
        msg = await conn.outbox.get()
        if on_line: on_line(msg)
        try:
            await websocket.send(msg)
        except websockets.ConnectionClosed:
            return

async def _cancel(task: asyncio.Task):
    """Cancel and reap a helper task; its own failures still surface."""
    task.cancel()
    with suppress(asyncio.CancelledError):
        await task

async def serve(cfg: Config, host: str = "0.0.0.0", port: int = 8765,
                screen: Optional[Tuple[int, int]] = None,
                on_line: Optional[Callable[[str], None]] = None):
    """Each websocket connection gets its own session and decay ticker."""
    async def handler(websocket):
        name = "peer-%s:%s" % tuple(websocket.remote_address[:2]) if websocket.remote_address else "peer"
        conn = Connection(cfg, screen, name=name)
        conn.session.start()
        sender = asyncio.create_task(_pump(conn, websocket, on_line))
        logger.info("%s connected", name)
        try:
            async for raw in websocket:
                conn.handle(raw)
        except websockets.ConnectionClosed:
            pass
        finally:
            await conn.session.aclose()
            await _cancel(sender)
            logger.info("%s disconnected", name)
    async with websockets.serve(handler, host, port):
        logger.info("listening on ws://%s:%d", host, port)
        await asyncio.Future()
