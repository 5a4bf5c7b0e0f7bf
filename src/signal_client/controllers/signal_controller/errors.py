"""Error taxonomy of the signaling client."""


class SignalError(Exception):
    """Base class for every failure raised by the signaling client."""


class DialError(SignalError):
    """The server could not be reached or refused the websocket handshake."""


class EncodeError(SignalError):
    """An outbound message or payload could not be serialized."""


class DecodeError(SignalError):
    """An inbound message could not be decoded into a signal envelope."""


class SendError(SignalError):
    """A write on the connection failed."""


class ReceiveError(SignalError):
    """A read on the connection failed or the connection went away."""


class DeadlineExceededError(ReceiveError):
    """The connect or session deadline elapsed while waiting."""


class ClosedError(SignalError):
    """The client was closed."""


class NotConnectedError(SignalError):
    """The client has no live connection yet."""
