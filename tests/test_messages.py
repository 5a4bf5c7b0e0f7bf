import json
import math

import pytest

from signal_client import DecodeError, EncodeError, LoginMessage, SignalMessage
from signal_client.controllers.signal_controller.messages import (
    load_payload,
    peek_correlation_id,
)


def test_login_message_wire_shape():
    assert LoginMessage("server-1").encode() == '{"signal":"login","login":"server-1"}'


def test_signal_message_wire_shape():
    message = SignalMessage.from_payload("offer", "peerA", b'{"type": "offer", "sdp": "v=0"}')
    assert message.encode() == '{"signal":"offer","peer":"peerA","data":{"type":"offer","sdp":"v=0"}}'


def test_candidate_round_trip_preserves_nested_payload():
    payload = {"x": 1, "nested": {"list": [1, 2.5, "three", None, True], "empty": {}}}
    message = SignalMessage("candidate", "p1", payload)

    decoded = SignalMessage.decode(message.encode().encode("utf-8"))

    assert decoded == message
    assert list(decoded.data["nested"]) == ["list", "empty"]


def test_payload_bytes_feed_back_into_write_calls():
    message = SignalMessage("answer", "peerA", {"sdp": "v=0", "type": "answer"})
    assert json.loads(message.payload_bytes()) == {"sdp": "v=0", "type": "answer"}


def test_correlation_id_only_on_wire_when_set():
    assert "correlation_id" not in SignalMessage("offer", "p", {}).to_dict()
    assert SignalMessage("offer", "p", {}, "abc").to_dict()["correlation_id"] == "abc"


def test_decode_unknown_kind_and_missing_fields():
    message = SignalMessage.decode('{"signal": "bye"}')
    assert message.kind == "bye"
    assert message.peer == ""
    assert message.data is None


def test_decode_null_fields_become_empty():
    message = SignalMessage.decode(b'{"signal": null, "peer": null, "data": [1]}')
    assert message.signal == ""
    assert message.peer == ""
    assert message.data == [1]


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"\xff\xfe",
        b"[1, 2]",
        b'"text"',
        b'{"signal": 5}',
        b'{"signal": "offer", "peer": ["a"]}',
    ],
)
def test_decode_rejects_malformed_messages(raw):
    with pytest.raises(DecodeError):
        SignalMessage.decode(raw)


@pytest.mark.parametrize("raw", [b"", b"{", b"undefined", b"\xff"])
def test_invalid_payload_is_an_encode_error(raw):
    with pytest.raises(EncodeError):
        load_payload(raw)


def test_non_finite_payload_is_an_encode_error():
    message = SignalMessage.from_payload("candidate", "p1", b"NaN")
    assert math.isnan(message.data)
    with pytest.raises(EncodeError):
        message.encode()


def test_scalar_payloads_pass_through():
    assert SignalMessage.from_payload("candidate", "p1", "null").data is None
    assert SignalMessage.from_payload("candidate", "p1", b"42").data == 42


def test_peek_correlation_id():
    assert peek_correlation_id(b'{"correlation_id": "abc"}') == "abc"
    assert peek_correlation_id(b'{"correlation_id": 7}') is None
    assert peek_correlation_id(b"[]") is None
    assert peek_correlation_id(b"garbage") is None


@pytest.mark.parametrize("login_id", [None, 5, b"server-1"])
def test_login_id_must_be_a_string(login_id):
    with pytest.raises(EncodeError):
        LoginMessage(login_id).encode()
