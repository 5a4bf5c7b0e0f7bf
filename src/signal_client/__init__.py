"""
WebRTC signal server client.

Logs in to a signal server over a websocket and exchanges offer, answer and
ICE candidate signals with remote peers.
"""

from .controllers.signal_controller import ClientState, SignalClient
from .controllers.signal_controller.config import (
    ConfigValidationError,
    SignalClientConfig,
)
from .controllers.signal_controller.errors import (
    ClosedError,
    DeadlineExceededError,
    DecodeError,
    DialError,
    EncodeError,
    NotConnectedError,
    ReceiveError,
    SendError,
    SignalError,
)
from .controllers.signal_controller.messages import LoginMessage, SignalMessage
from .controllers.signal_controller.transport import Transport, WebSocketTransport
from .tools.events import SignalEvent

__all__ = [
    "ClientState",
    "SignalClient",
    "SignalClientConfig",
    "ConfigValidationError",
    "SignalError",
    "DialError",
    "EncodeError",
    "DecodeError",
    "SendError",
    "ReceiveError",
    "DeadlineExceededError",
    "ClosedError",
    "NotConnectedError",
    "LoginMessage",
    "SignalMessage",
    "SignalEvent",
    "Transport",
    "WebSocketTransport",
]
