"""
Protocol Events

Structured records for what the signaling client does on the wire. The client
hands every record to an observer callable; the default observer writes them
through the package logger.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from .logger import log_debug, log_error, log_info, log_warning


CONNECTING = "connecting"
CONNECTED = "connected"
CONNECT_FAILED = "connect_failed"
LOGIN_SENT = "login_sent"
LOGIN_REPLY = "login_reply"
OFFER_SENT = "offer_sent"
ANSWER_SENT = "answer_sent"
CANDIDATE_SENT = "candidate_sent"
MESSAGE_RECEIVED = "message_received"
READ_FAILED = "read_failed"
WRITE_FAILED = "write_failed"
CLOSED = "closed"


@dataclass
class SignalEvent:
    name: str
    peer: Optional[str] = None
    detail: Optional[str] = None
    at: datetime = field(default_factory=datetime.now)

    def describe(self) -> str:
        parts = [self.name]
        if self.peer:
            parts.append(f"peer={self.peer}")
        if self.detail:
            parts.append(self.detail)
        return " ".join(parts)


Observer = Callable[[SignalEvent], None]

_ERROR_EVENTS = {CONNECT_FAILED, READ_FAILED, WRITE_FAILED}
_DEBUG_EVENTS = {MESSAGE_RECEIVED, CANDIDATE_SENT}


def log_event(event: SignalEvent) -> None:
    """Default observer: forward the event to the logger at a fitting level."""
    if event.name in _ERROR_EVENTS:
        log_warning(event.describe())
    elif event.name in _DEBUG_EVENTS:
        log_debug(event.describe())
    else:
        log_info(event.describe())


def emit(observer: Optional[Observer], event: SignalEvent) -> None:
    if observer is None:
        return
    try:
        observer(event)
    except Exception as e:
        log_error(f"Error in signal event observer for '{event.name}': {e}")
