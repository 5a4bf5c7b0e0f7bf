"""
pytest configuration and fixtures for the signal client tests
"""

import asyncio
import json

import pytest
import pytest_asyncio
from aiohttp import WSMsgType, web
from aiohttp.test_utils import TestServer

from signal_client.controllers.signal_controller.errors import SendError
from signal_client.controllers.signal_controller.transport import Transport


LOGIN_REPLY = {"signal": "login", "login": "ok"}


def answer_for(message):
    """Default reply of the mock server to an offer."""
    reply = {
        "signal": "answer",
        "peer": message.get("peer"),
        "data": {"type": "answer", "sdp": "v=0\r\n"},
    }
    if "correlation_id" in message:
        reply["correlation_id"] = message["correlation_id"]
    return reply


class MockSignalServer:
    """
    Websocket signal server running in-process on an ephemeral port.

    Every text message is recorded in ``received``. ``responder`` returns the
    messages to send back (dicts are JSON encoded, strings are sent as is).
    """

    def __init__(self):
        self.received = []
        self.connections = []
        self.close_after_login = False
        self.responder = self.default_responder
        self._server = None

    @staticmethod
    def default_responder(message):
        if message.get("signal") == "login":
            return [LOGIN_REPLY]
        if message.get("signal") == "offer":
            return [answer_for(message)]
        return []

    @property
    def address(self):
        return f"{self._server.host}:{self._server.port}"

    async def start(self):
        app = web.Application()
        app.router.add_get("/signal", self._handle)
        self._server = TestServer(app, host="127.0.0.1")
        await self._server.start_server()

    async def stop(self):
        for ws in list(self.connections):
            await ws.close()
        await self._server.close()

    async def push(self, message):
        """Send a message to the most recent connection."""
        text = message if isinstance(message, str) else json.dumps(message)
        await self.connections[-1].send_str(text)

    async def drop_connections(self):
        for ws in list(self.connections):
            await ws.close()

    async def wait_for_messages(self, count, timeout=2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while len(self.received) < count:
            if loop.time() > deadline:
                raise AssertionError(
                    f"Expected {count} messages, server received {len(self.received)}"
                )
            await asyncio.sleep(0.01)
        return self.received

    async def _handle(self, request):
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self.connections.append(ws)

        async for msg in ws:
            if msg.type != WSMsgType.TEXT:
                continue
            message = json.loads(msg.data)
            self.received.append(message)
            if message.get("signal") == "login" and self.close_after_login:
                await ws.close()
                break
            for reply in self.responder(message):
                await ws.send_str(reply if isinstance(reply, str) else json.dumps(reply))

        self.connections.remove(ws)
        return ws


class ScriptedTransport(Transport):
    """In-memory transport: inbound messages are queued by the test."""

    def __init__(self, replies=()):
        self.incoming = asyncio.Queue()
        for reply in replies:
            self.incoming.put_nowait(reply)
        self.sent = []
        self.dialed = None
        self.closed_with = None

    async def dial(self, url, headers=None):
        self.dialed = url

    async def send_text(self, text):
        if self.closed_with is not None:
            raise SendError("Write message error: connection is closed")
        self.sent.append(text)

    async def receive(self):
        return await self.incoming.get()

    async def close(self, code, reason):
        self.closed_with = (code, reason)


class EventRecorder:

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    @property
    def names(self):
        return [event.name for event in self.events]


@pytest_asyncio.fixture
async def signal_server():
    server = MockSignalServer()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def events():
    return EventRecorder()


@pytest.fixture
def login_reply_bytes():
    return json.dumps(LOGIN_REPLY).encode("utf-8")


@pytest.fixture
def scripted_transport():
    """Factory for in-memory transports preloaded with inbound messages."""
    return ScriptedTransport
