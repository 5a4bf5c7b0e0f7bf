"""
WebRTC Payloads

Conversions between aiortc objects and the opaque payload bytes carried in the
``data`` field of offer, answer and candidate signals. Candidates use the
browser's JSON form so the remote side can hand them to ``addIceCandidate``.
"""

import json
from typing import Any, Optional

from aiortc import RTCIceCandidate, RTCSessionDescription
from aiortc.sdp import candidate_from_sdp, candidate_to_sdp

from ...tools.contract_validation import (
    ICE_CANDIDATE_CONTRACT,
    SESSION_DESCRIPTION_CONTRACT,
    ContractValidationError,
    check_contract,
)
from .errors import DecodeError


CANDIDATE_PREFIX = "candidate:"


def _load(payload) -> Any:
    if isinstance(payload, (bytes, bytearray, str)):
        try:
            return json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"Payload is not valid JSON: {e}") from e
    return payload


def _check(contract, value, what: str):
    try:
        check_contract(contract, value)
    except ContractValidationError as e:
        raise DecodeError(f"Invalid {what}: {e.message}") from e


def description_to_payload(description: RTCSessionDescription) -> bytes:
    return json.dumps({"sdp": description.sdp, "type": description.type}).encode("utf-8")


def payload_to_description(payload) -> RTCSessionDescription:
    """
    Build a session description from payload bytes or an already decoded value
    such as ``SignalMessage.data``.
    """
    value = _load(payload)
    _check(SESSION_DESCRIPTION_CONTRACT, value, "session description")
    try:
        return RTCSessionDescription(sdp=value["sdp"], type=value["type"])
    except ValueError as e:
        raise DecodeError(f"Invalid session description: {e}") from e


def candidate_to_payload(candidate: Optional[RTCIceCandidate]) -> bytes:
    """Encode a local candidate; None encodes the end-of-candidates marker."""
    if candidate is None:
        return json.dumps({"candidate": "", "sdpMid": None, "sdpMLineIndex": None}).encode("utf-8")
    return json.dumps(
        {
            "candidate": CANDIDATE_PREFIX + candidate_to_sdp(candidate),
            "sdpMid": candidate.sdpMid,
            "sdpMLineIndex": candidate.sdpMLineIndex,
        }
    ).encode("utf-8")


def payload_to_candidate(payload) -> Optional[RTCIceCandidate]:
    """
    Decode a remote candidate. Returns None for the end-of-candidates marker.
    """
    value = _load(payload)
    _check(ICE_CANDIDATE_CONTRACT, value, "ICE candidate")

    candidate_str = value.get("candidate")
    if not candidate_str:
        return None
    if candidate_str.startswith(CANDIDATE_PREFIX):
        candidate_str = candidate_str[len(CANDIDATE_PREFIX):]

    try:
        candidate = candidate_from_sdp(candidate_str)
    except (AssertionError, IndexError, ValueError) as e:
        raise DecodeError(f"Invalid ICE candidate '{candidate_str}': {e}") from e

    candidate.sdpMid = value.get("sdpMid")
    sdp_mline_index = value.get("sdpMLineIndex")
    candidate.sdpMLineIndex = int(sdp_mline_index) if sdp_mline_index is not None else None
    return candidate
