"""
Configuration for the signaling client.

The connect step and the connected session get separate deadlines. Setting
``session_timeout`` to the same value as ``dial_timeout`` reproduces clients
whose whole session dies one minute after dialing.
"""

from dataclasses import dataclass, field
from typing import Optional


DEFAULT_PATH = "/signal"
DEFAULT_DIAL_TIMEOUT = 60.0  # seconds
DEFAULT_CLOSE_REASON = "done"
DEFAULT_INBOX_SIZE = 256
SCHEMES = ("ws", "wss")


class ConfigValidationError(ValueError):
    """Raised when a configuration value is out of range."""


@dataclass
class SignalClientConfig:
    path: str = DEFAULT_PATH
    scheme: str = "ws"
    dial_timeout: float = DEFAULT_DIAL_TIMEOUT
    # None: the session has no deadline once connected.
    session_timeout: Optional[float] = None
    # Wait for the first server message after login before connect returns.
    await_login_reply: bool = True
    # Stamp offers with a correlation_id and match the reply by id.
    correlate: bool = False
    close_reason: str = DEFAULT_CLOSE_REASON
    # Unread inbound messages buffered before the reader pauses, 0 is unbounded.
    inbox_size: int = DEFAULT_INBOX_SIZE
    # aiohttp websocket ping interval, None disables pings.
    heartbeat: Optional[float] = None
    headers: dict = field(default_factory=dict)

    def validate(self) -> None:
        """
        Raises:
            ConfigValidationError: if any field is out of range.
        """
        if self.scheme not in SCHEMES:
            raise ConfigValidationError(
                f"scheme must be one of {', '.join(SCHEMES)}, got: {self.scheme}"
            )
        if not self.path.startswith("/"):
            raise ConfigValidationError(f"path must start with '/', got: {self.path}")
        if self.dial_timeout <= 0:
            raise ConfigValidationError(
                f"dial_timeout must be positive, got: {self.dial_timeout}"
            )
        if self.session_timeout is not None and self.session_timeout <= 0:
            raise ConfigValidationError(
                f"session_timeout must be positive or None, got: {self.session_timeout}"
            )
        if self.inbox_size < 0:
            raise ConfigValidationError(
                f"inbox_size must be zero or positive, got: {self.inbox_size}"
            )
        if self.heartbeat is not None and self.heartbeat <= 0:
            raise ConfigValidationError(
                f"heartbeat must be positive or None, got: {self.heartbeat}"
            )

    def url_for(self, server_address: str) -> str:
        """Build the websocket URL for ``host:port``."""
        return f"{self.scheme}://{server_address}{self.path}"
