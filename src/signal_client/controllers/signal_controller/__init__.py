"""
Signal Controller

Client side of the signal server protocol used to bootstrap WebRTC sessions.
A client logs in over a websocket, sends offer/answer/candidate signals to a
peer through the server and waits for whatever the server pushes next.

Requests and replies are matched by program order: the next inbound message
is taken as the reply to the last outbound one. A client is meant to be driven
by one task at a time. With ``SignalClientConfig.correlate`` enabled, offers
carry a ``correlation_id`` and their reply is matched by id instead.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional
from uuid import uuid4

from ...tools.events import (
    ANSWER_SENT,
    CANDIDATE_SENT,
    CLOSED,
    CONNECT_FAILED,
    CONNECTED,
    CONNECTING,
    LOGIN_REPLY,
    LOGIN_SENT,
    MESSAGE_RECEIVED,
    OFFER_SENT,
    READ_FAILED,
    WRITE_FAILED,
    Observer,
    SignalEvent,
    emit,
    log_event,
)
from .config import SignalClientConfig
from .correlation import PendingRequests
from .errors import (
    ClosedError,
    DeadlineExceededError,
    DialError,
    NotConnectedError,
    ReceiveError,
    SendError,
    SignalError,
)
from .messages import (
    ANSWER,
    CANDIDATE,
    OFFER,
    LoginMessage,
    RawMessage,
    SignalMessage,
    peek_correlation_id,
)
from .transport import NORMAL_CLOSURE, Transport, WebSocketTransport


class ClientState(Enum):
    """Signal client states."""
    UNCONNECTED = "unconnected"  # Created, connect not yet succeeded
    CONNECTED = "connected"      # Logged in, ready to exchange signals
    CLOSED = "closed"            # Terminal


class SignalClient:
    """
    Signal server client.

    Usage::

        client = SignalClient()
        await client.connect("localhost:8081", "server-1")
        answer = await client.write_offer("client-1", offer_bytes)
        await client.close()

    Inbound messages nobody has waited for yet are buffered in an inbox of
    ``config.inbox_size`` entries. When it is full the reader stops reading
    the connection until a wait_* call takes a message, so with correlation
    enabled a pending offer also waits for the inbox to drain.
    """

    def __init__(
        self,
        config: Optional[SignalClientConfig] = None,
        transport_factory: Optional[Callable[[], Transport]] = None,
        observer: Optional[Observer] = log_event,
    ):
        self.config = config or SignalClientConfig()
        self.config.validate()
        self._transport_factory = transport_factory or self._default_transport
        self._observer = observer

        self._state = ClientState.UNCONNECTED
        self._transport: Optional[Transport] = None
        self._inbox: Optional[asyncio.Queue] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._pending = PendingRequests()
        self._session_deadline: Optional[float] = None

        self.server_address: Optional[str] = None
        self.login_id: Optional[str] = None
        self.login_reply: Optional[bytes] = None

    def _default_transport(self) -> Transport:
        return WebSocketTransport(heartbeat=self.config.heartbeat)

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ClientState.CONNECTED

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self, server_address: str, login_id: str) -> None:
        """
        Dial the signal server, send the login signal and, unless disabled,
        wait for the server's first message.

        The whole step is bounded by ``config.dial_timeout``. On failure the
        partial connection is torn down and the client stays UNCONNECTED.

        Raises:
            DialError, EncodeError, SendError, ReceiveError: connect failed
            ClosedError: the client was closed before or during connect
            SignalError: the client is already connected
        """
        if self._state is ClientState.CLOSED:
            raise ClosedError("Signal client is closed")
        if self._state is ClientState.CONNECTED:
            raise SignalError(f"Signal client already connected to {self.server_address}")

        loop = asyncio.get_running_loop()
        connect_deadline = loop.time() + self.config.dial_timeout
        url = self.config.url_for(server_address)
        self._emit(CONNECTING, detail=url)

        transport = self._transport_factory()
        self._transport = transport
        self._inbox = asyncio.Queue(maxsize=self.config.inbox_size)
        self._pending.reset()

        try:
            try:
                await asyncio.wait_for(
                    transport.dial(url, headers=self.config.headers),
                    timeout=self.config.dial_timeout,
                )
            except asyncio.TimeoutError as e:
                raise DialError(
                    f"Dial error: no connection to {url} after {self.config.dial_timeout}s"
                ) from e
            self._raise_if_closed()

            self._reader_task = asyncio.create_task(self._read_loop(transport, self._inbox))

            await self._send(transport, LoginMessage(login_id).encode(), connect_deadline)
            self._raise_if_closed()
            self._emit(LOGIN_SENT, peer=login_id)

            if self.config.await_login_reply:
                self.login_reply = await self._next_message(connect_deadline)
                self._emit(LOGIN_REPLY, detail=f"{len(self.login_reply)} bytes")
            self._raise_if_closed()
        except SignalError as e:
            self._emit(CONNECT_FAILED, detail=str(e))
            await self._teardown(transport)
            if self._state is ClientState.CLOSED and not isinstance(e, ClosedError):
                raise ClosedError("Signal client closed while connecting") from e
            raise
        except asyncio.CancelledError:
            await self._teardown(transport)
            raise

        self.server_address = server_address
        self.login_id = login_id
        if self.config.session_timeout is not None:
            self._session_deadline = loop.time() + self.config.session_timeout
        self._state = ClientState.CONNECTED
        self._emit(CONNECTED, peer=login_id, detail=url)

    async def close(self) -> None:
        """
        Close the connection with a normal closure and release pending waits.

        Safe to call from any state; a closed client stays closed.
        """
        if self._state is ClientState.CLOSED:
            return
        self._state = ClientState.CLOSED

        error = ClosedError("Signal client closed")
        await self._stop_reader()
        # A full inbox has no blocked waiter to wake.
        if self._inbox is not None and not self._inbox.full():
            self._inbox.put_nowait(error)
        self._pending.fail_all(error)

        transport, self._transport = self._transport, None
        if transport is not None:
            await transport.close(NORMAL_CLOSURE, self.config.close_reason)
        self._emit(CLOSED, peer=self.login_id)

    async def _teardown(self, transport: Transport):
        """Undo a connect that failed or was overtaken by close()."""
        await self._stop_reader()
        if self._transport is transport:
            self._transport = None
        # close() may already have closed it; transports tolerate a second close.
        await transport.close(NORMAL_CLOSURE, self.config.close_reason)
        self.login_reply = None
        if self._state is not ClientState.CLOSED:
            self._inbox = None
            self._pending.reset()

    def _raise_if_closed(self):
        if self._state is ClientState.CLOSED:
            raise ClosedError("Signal client closed while connecting")

    async def _stop_reader(self):
        reader, self._reader_task = self._reader_task, None
        if reader is not None:
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass

    def _ensure_connected(self):
        if self._state is ClientState.CLOSED:
            raise ClosedError("Signal client is closed")
        if self._state is ClientState.UNCONNECTED:
            raise NotConnectedError("Signal client is not connected")

    # ------------------------------------------------------------------
    # Signal exchange
    # ------------------------------------------------------------------

    async def wait_offer(self) -> SignalMessage:
        """
        Wait for the next inbound message and decode it.

        The message is returned whatever its ``signal`` field says; check
        ``kind`` before using it as an offer.
        """
        self._ensure_connected()
        return SignalMessage.decode(await self._wait_answer())

    async def wait_candidate(self) -> SignalMessage:
        """Same as :meth:`wait_offer`; the name documents the expected kind."""
        self._ensure_connected()
        return SignalMessage.decode(await self._wait_answer())

    async def write_offer(self, peer: str, offer: RawMessage) -> bytes:
        """
        Send an offer signal and return the raw bytes of the reply.

        Without correlation the reply is simply the next inbound message.
        """
        self._ensure_connected()
        if not self.config.correlate:
            await self._write_signal(OFFER, peer, offer)
            self._emit(OFFER_SENT, peer=peer)
            return await self._wait_answer()

        correlation_id = uuid4().hex
        waiter = self._pending.register(correlation_id)
        try:
            await self._write_signal(OFFER, peer, offer, correlation_id)
            self._emit(OFFER_SENT, peer=peer, detail=f"correlation_id={correlation_id}")
            try:
                return await asyncio.wait_for(waiter, self._remaining(self._session_deadline))
            except asyncio.TimeoutError as e:
                raise DeadlineExceededError(
                    f"Deadline exceeded waiting for the answer to offer {correlation_id}"
                ) from e
        finally:
            self._pending.discard(correlation_id)

    async def write_answer(self, peer: str, answer: RawMessage) -> None:
        """Send an answer signal. Nothing is awaited from the server."""
        self._ensure_connected()
        await self._write_signal(ANSWER, peer, answer)
        self._emit(ANSWER_SENT, peer=peer)

    async def write_candidate(self, peer: str, candidate: RawMessage) -> None:
        """Send one ICE candidate signal. Each call is a separate message."""
        self._ensure_connected()
        await self._write_signal(CANDIDATE, peer, candidate)
        self._emit(CANDIDATE_SENT, peer=peer)

    async def _write_signal(
        self,
        signal: str,
        peer: str,
        payload: RawMessage,
        correlation_id: Optional[str] = None,
    ) -> None:
        message = SignalMessage.from_payload(signal, peer, payload, correlation_id)
        await self._send(self._transport, message.encode(), self._session_deadline)

    async def _wait_answer(self) -> bytes:
        return await self._next_message(self._session_deadline)

    # ------------------------------------------------------------------
    # I/O primitives
    # ------------------------------------------------------------------

    def _remaining(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return max(0.0, deadline - asyncio.get_running_loop().time())

    async def _send(self, transport: Transport, text: str, deadline: Optional[float]) -> None:
        try:
            await asyncio.wait_for(transport.send_text(text), self._remaining(deadline))
        except asyncio.TimeoutError as e:
            self._emit(WRITE_FAILED, detail="deadline exceeded")
            raise SendError("Write message error: deadline exceeded") from e
        except SendError as e:
            self._emit(WRITE_FAILED, detail=str(e))
            raise

    async def _next_message(self, deadline: Optional[float]) -> bytes:
        inbox = self._inbox
        try:
            item = await asyncio.wait_for(inbox.get(), self._remaining(deadline))
        except asyncio.TimeoutError as e:
            raise DeadlineExceededError("Read message error: deadline exceeded") from e
        if isinstance(item, SignalError):
            # Keep the failure for every later wait.
            inbox.put_nowait(item)
            raise item
        return item

    async def _read_loop(self, transport: Transport, inbox: asyncio.Queue):
        """Single reader of the connection; feeds the inbox and pending table."""
        try:
            while True:
                message = await transport.receive()
                self._emit(MESSAGE_RECEIVED, detail=f"{len(message)} bytes")
                if self.config.correlate and self._pending.resolve(
                    peek_correlation_id(message), message
                ):
                    continue
                # Blocks while the inbox is full; the socket is not read meanwhile.
                await inbox.put(message)
        except ReceiveError as e:
            error = e
        except Exception as e:
            error = ReceiveError(f"Read message error: {e}")
        self._emit(READ_FAILED, detail=str(error))
        self._pending.fail_all(error)
        await inbox.put(error)

    def _emit(self, name: str, peer: Optional[str] = None, detail: Optional[str] = None):
        emit(self._observer, SignalEvent(name, peer=peer, detail=detail))
