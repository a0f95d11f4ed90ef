import json

import pytest

from credproof.disclosure import IssuerKey, build_presentation, check_presentation, issue_credential
from credproof.disclosure.config import MAX_PRESENTATION_BYTES, MAX_RECORD_STRING_BYTES
from credproof.session.constants import MAX_CONTROL_MESSAGE_BYTES, MAX_REQUEST_FIELDS
from credproof.session.limits import MAX_FRAME_BYTES
from credproof.session.errors import SchemaError, SizeLimitError
from credproof.session.messages import (
    MpcRequest,
    PodPresentation,
    PodRequest,
    decode_envelope,
    encode_envelope,
)


def test_envelope_shape() -> None:
    text = encode_envelope(PodRequest(fields=("age", "name")))
    assert json.loads(text) == {
        "type": "DATA",
        "payload": {"type": "POD_REQUEST", "fields": ["age", "name"]},
    }


@pytest.mark.parametrize(
    "message",
    [
        PodRequest(fields=()),
        PodRequest(fields=("age",)),
        PodPresentation(presentation={"revealed": {}}, issuer_pk="pk"),
        MpcRequest(min_age=18, check_name=True),
    ],
)
def test_decode_returns_equal_message(message) -> None:
    assert decode_envelope(encode_envelope(message)) == message


def test_big_integers_survive_the_envelope() -> None:
    presentation = {"revealed": {"n": {"value": {"type": "int", "value": 2**64}}}}
    text = encode_envelope(PodPresentation(presentation=presentation, issuer_pk="pk"))
    assert '"__bigint":"18446744073709551616"' in text
    decoded = decode_envelope(text)
    assert decoded.presentation["revealed"]["n"]["value"]["value"] == 2**64


def test_numeric_string_min_age_is_accepted() -> None:
    text = '{"type":"DATA","payload":{"type":"MPC_REQUEST","minAge":"21","checkName":false}}'
    assert decode_envelope(text) == MpcRequest(min_age=21, check_name=False)


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[]",
        '{"type":"CTRL","payload":{}}',
        '{"type":"DATA","payload":[]}',
        '{"type":"DATA","payload":{"type":"HELLO"}}',
        '{"type":"DATA","payload":{"type":"POD_REQUEST","fields":"age"}}',
        '{"type":"DATA","payload":{"type":"POD_REQUEST","fields":[""]}}',
        '{"type":"DATA","payload":{"type":"POD_REQUEST","fields":[1]}}',
        '{"type":"DATA","payload":{"type":"POD_PRESENTATION","presentation":"x","issuerPk":"pk"}}',
        '{"type":"DATA","payload":{"type":"POD_PRESENTATION","presentation":{}}}',
        '{"type":"DATA","payload":{"type":"MPC_REQUEST","minAge":-1}}',
        '{"type":"DATA","payload":{"type":"MPC_REQUEST","minAge":"old"}}',
        '{"type":"DATA","payload":{"type":"MPC_REQUEST","minAge":true}}',
    ],
)
def test_malformed_envelopes_raise_schema_error(text: str) -> None:
    with pytest.raises(SchemaError):
        decode_envelope(text)


def test_non_text_envelope() -> None:
    with pytest.raises(SchemaError):
        decode_envelope(b"{}")


def test_too_many_fields() -> None:
    with pytest.raises(SchemaError):
        encode_envelope(PodRequest(fields=tuple(f"f{i}" for i in range(MAX_REQUEST_FIELDS + 1))))


def test_size_limits() -> None:
    huge = PodPresentation(presentation={"blob": "x" * MAX_CONTROL_MESSAGE_BYTES}, issuer_pk="pk")
    with pytest.raises(SizeLimitError):
        encode_envelope(huge)
    with pytest.raises(SizeLimitError):
        decode_envelope(" " * (MAX_CONTROL_MESSAGE_BYTES + 1))


@pytest.mark.parametrize(
    "text",
    [
        "[" * 200_000,
        '{"type":"DATA","payload":{"type":"MPC_REQUEST","minAge":"²"}}',
        '{"type":"DATA","payload":{"type":"MPC_REQUEST","minAge":"-5"}}',
        '{"type":"DATA","payload":{"type":"MPC_REQUEST","minAge":{"__bigint":"1_0"}}}',
    ],
)
def test_malformed_text_is_always_a_schema_error(text) -> None:
    with pytest.raises(SchemaError):
        decode_envelope(text)


def test_largest_presentation_fits_one_frame() -> None:
    assert MAX_CONTROL_MESSAGE_BYTES >= MAX_PRESENTATION_BYTES
    assert MAX_FRAME_BYTES >= MAX_CONTROL_MESSAGE_BYTES

    # control characters take six bytes each once JSON-escaped
    record = issue_credential(IssuerKey.generate(), {"photo": "\x01" * MAX_RECORD_STRING_BYTES})
    presentation = build_presentation(record, ["photo", "timestamp"])
    assert len(presentation.serialize().encode("utf-8")) <= MAX_PRESENTATION_BYTES

    text = encode_envelope(PodPresentation(presentation=presentation.to_json(), issuer_pk="pk"))
    assert check_presentation(decode_envelope(text).presentation, record.signer_public_key).ok
