"""
Signal Messages

Wire shapes exchanged with the signal server:

    Login:  {"signal": "login", "login": "<login id>"}
    Signal: {"signal": "<offer|answer|candidate|...>", "peer": "<peer id>", "data": <opaque>}

The ``data`` value is opaque here: it is decoded into plain JSON values
(dict, list, str, int, float, bool, None) and written back without being
looked at. Clients that enable correlation add a ``correlation_id`` string.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from ...tools.contract_validation import (
    LOGIN_CONTRACT,
    SIGNAL_CONTRACT,
    ContractValidationError,
    check_contract,
)
from .errors import DecodeError, EncodeError


LOGIN = "login"
OFFER = "offer"
ANSWER = "answer"
CANDIDATE = "candidate"

RawMessage = Union[bytes, bytearray, str]


def _dumps(value) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def load_payload(raw: RawMessage) -> Any:
    """
    Decode caller supplied payload bytes into a plain JSON value.

    Raises:
        EncodeError: if the bytes are not valid JSON.
    """
    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
        raise EncodeError(f"Payload is not valid JSON: {e}") from e


@dataclass
class LoginMessage:
    login: str
    signal: str = LOGIN

    def to_dict(self) -> dict:
        return {"signal": self.signal, "login": self.login}

    def encode(self) -> str:
        message = self.to_dict()
        try:
            check_contract(LOGIN_CONTRACT, message)
        except ContractValidationError as e:
            raise EncodeError(f"Cannot encode login message: {e.message}") from e
        return _dumps(message)


@dataclass
class SignalMessage:
    signal: str
    peer: str
    data: Any = None
    correlation_id: Optional[str] = None

    @property
    def kind(self) -> str:
        return self.signal

    def to_dict(self) -> dict:
        message = {"signal": self.signal, "peer": self.peer, "data": self.data}
        if self.correlation_id is not None:
            message["correlation_id"] = self.correlation_id
        return message

    def encode(self) -> str:
        try:
            return _dumps(self.to_dict())
        except (TypeError, ValueError) as e:
            raise EncodeError(f"Cannot encode {self.signal} signal: {e}") from e

    def payload_bytes(self) -> bytes:
        """Re-encode ``data`` as JSON bytes, the form the write_* calls accept."""
        try:
            return _dumps(self.data).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodeError(f"Cannot encode {self.signal} payload: {e}") from e

    @classmethod
    def from_payload(
        cls,
        signal: str,
        peer: str,
        payload: RawMessage,
        correlation_id: Optional[str] = None,
    ) -> "SignalMessage":
        return cls(signal, peer, load_payload(payload), correlation_id)

    @classmethod
    def decode(cls, raw: RawMessage) -> "SignalMessage":
        """
        Decode an inbound message of any kind.

        Missing fields decode to empty values. The ``signal`` field is not
        checked against the known kinds; callers dispatch on it.

        Raises:
            DecodeError: if the message is not a JSON object or a field has
                the wrong type.
        """
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            message = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"Message is not valid JSON: {e}") from e

        try:
            check_contract(SIGNAL_CONTRACT, message)
        except ContractValidationError as e:
            raise DecodeError(e.message) from e

        return cls(
            signal=message.get("signal") or "",
            peer=message.get("peer") or "",
            data=message.get("data"),
            correlation_id=message.get("correlation_id"),
        )


def peek_correlation_id(raw: RawMessage) -> Optional[str]:
    """Return the correlation_id of an inbound message, or None if it has none."""
    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        message = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(message, dict):
        return None
    correlation_id = message.get("correlation_id")
    return correlation_id if isinstance(correlation_id, str) else None
