"""
Signal Transport

Full-duplex text message connection used by the signaling client. The client
only depends on ``Transport``; ``WebSocketTransport`` is the aiohttp backed
implementation used by default.
"""

from typing import Optional

from aiohttp import ClientError, ClientSession, WSCloseCode, WSMsgType

from ...tools.logger import log_debug
from .errors import DialError, ReceiveError, SendError


NORMAL_CLOSURE = WSCloseCode.OK


class Transport:
    """Interface of the connection the signaling client drives."""

    async def dial(self, url: str, headers: Optional[dict] = None) -> None:
        raise NotImplementedError("Subclasses should implement this!")

    async def send_text(self, text: str) -> None:
        raise NotImplementedError("Subclasses should implement this!")

    async def receive(self) -> bytes:
        """Block until the next message arrives and return its bytes."""
        raise NotImplementedError("Subclasses should implement this!")

    async def close(self, code: int, reason: str) -> None:
        raise NotImplementedError("Subclasses should implement this!")


class WebSocketTransport(Transport):
    """
    Websocket connection on top of an aiohttp client session.

    When no session is given the transport creates its own and closes it
    together with the websocket.
    """

    def __init__(self, session: Optional[ClientSession] = None, heartbeat: Optional[float] = None):
        self._session = session
        self._owns_session = session is None
        self._heartbeat = heartbeat
        self._ws = None

    @property
    def closed(self) -> bool:
        return self._ws is None or self._ws.closed

    async def dial(self, url: str, headers: Optional[dict] = None) -> None:
        if self._session is None:
            self._session = ClientSession()
        try:
            self._ws = await self._session.ws_connect(
                url,
                headers=headers or None,
                heartbeat=self._heartbeat,
            )
        except (ClientError, OSError, ValueError) as e:
            await self._release_session()
            raise DialError(f"Dial error: {e}") from e

    async def send_text(self, text: str) -> None:
        if self.closed:
            raise SendError("Write message error: connection is closed")
        try:
            await self._ws.send_str(text)
        except (ClientError, ConnectionError) as e:
            raise SendError(f"Write message error: {e}") from e

    async def receive(self) -> bytes:
        if self._ws is None:
            raise ReceiveError("Read message error: connection is not open")
        while True:
            message = await self._ws.receive()
            if message.type == WSMsgType.TEXT:
                return message.data.encode("utf-8")
            if message.type == WSMsgType.BINARY:
                return message.data
            if message.type in (WSMsgType.CLOSE, WSMsgType.CLOSING, WSMsgType.CLOSED):
                raise ReceiveError(
                    f"Read message error: connection closed (code {self._ws.close_code})"
                )
            if message.type == WSMsgType.ERROR:
                raise ReceiveError(f"Read message error: {self._ws.exception()}")
            log_debug(f"Ignoring websocket frame of type {message.type}")

    async def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        ws, self._ws = self._ws, None
        if ws is not None and not ws.closed:
            try:
                await ws.close(code=code, message=reason.encode("utf-8"))
            except (ClientError, ConnectionError) as e:
                log_debug(f"Error closing websocket: {e}")
        await self._release_session()

    async def _release_session(self):
        if self._owns_session and self._session is not None:
            session, self._session = self._session, None
            await session.close()
