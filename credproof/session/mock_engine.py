"""
Commit-then-reveal reference engine for the age, residency and name checks.

WARNING: each party learns the other's inputs. There is no input privacy;
use it for tests and local demos only.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Dict, Mapping, Optional

import cbor2
import trio

from ..disclosure.security import RandomnessSource
from .constants import PARTIES, PARTY_REQUIREMENT, PARTY_SUBJECT
from .engine import SendCallback
from .errors import ProtocolError

logger = logging.getLogger(__name__)

_NONCE_BYTES = 16
_ROUND_COMMIT = "commit"
_ROUND_REVEAL = "reveal"

_INPUT_SCHEMA: Dict[str, Dict[str, type]] = {
    PARTY_REQUIREMENT: {"minAge": int, "requiredResidency": str, "requiredNameHash": int},
    PARTY_SUBJECT: {"age": int, "residency": str, "nameHash": int},
}


def _check_inputs(party: str, inputs: Mapping[str, Any]) -> Dict[str, Any]:
    schema = _INPUT_SCHEMA[party]
    if not isinstance(inputs, Mapping) or set(inputs) != set(schema):
        raise ValueError(f"{party} inputs must have exactly {sorted(schema)}")
    for key, kind in schema.items():
        value = inputs[key]
        if isinstance(value, bool) or not isinstance(value, kind):
            raise ValueError(f"{party} input {key} must be {kind.__name__}")
    return dict(inputs)


def _commitment(inputs: Mapping[str, Any], nonce: bytes) -> bytes:
    return hashlib.sha256(cbor2.dumps(dict(inputs), canonical=True) + nonce).digest()


class MockPredicateSession:
    """
    One party's side of a commit-then-reveal predicate evaluation.

    Each party commits to SHA256(cbor(inputs) || nonce), reveals after
    seeing the other commitment, and evaluates the predicate in the clear.
    """

    def __init__(
        self,
        party: str,
        inputs: Mapping[str, Any],
        send: SendCallback,
        rng: Optional[RandomnessSource] = None,
    ) -> None:
        if party not in PARTIES:
            raise ValueError(f"unknown party {party!r}")
        self._party = party
        self._counterpart = PARTY_SUBJECT if party == PARTY_REQUIREMENT else PARTY_REQUIREMENT
        self._inputs = _check_inputs(party, inputs)
        self._send = send
        self._nonce = (rng or RandomnessSource()).get_random_bytes(_NONCE_BYTES)
        self._peer_commitment: Optional[bytes] = None
        self._result: Optional[Dict[str, int]] = None
        self._done = trio.Event()

        self._emit(_ROUND_COMMIT, commitment=_commitment(self._inputs, self._nonce))

    def _emit(self, round_name: str, **fields: Any) -> None:
        message = {"from": self._party, "round": round_name, **fields}
        self._send(self._counterpart, cbor2.dumps(message, canonical=True))

    def handle_message(self, from_party: str, data: bytes) -> None:
        if from_party != self._counterpart:
            raise ProtocolError(f"unexpected sender {from_party!r}")
        if self._done.is_set():
            raise ProtocolError("message after completion")
        try:
            message = cbor2.loads(data)
        except (cbor2.CBORDecodeError, ValueError, RecursionError) as exc:
            raise ProtocolError(f"malformed engine message: {exc}") from exc
        if not isinstance(message, dict) or message.get("from") != self._counterpart:
            raise ProtocolError("engine message names an unexpected sender")

        round_name = message.get("round")
        if round_name == _ROUND_COMMIT:
            self._on_commit(message)
        elif round_name == _ROUND_REVEAL:
            self._on_reveal(message)
        else:
            raise ProtocolError(f"unknown engine round {round_name!r}")

    def _on_commit(self, message: Dict[str, Any]) -> None:
        commitment = message.get("commitment")
        if self._peer_commitment is not None:
            raise ProtocolError("duplicate commitment")
        if not isinstance(commitment, bytes) or len(commitment) != 32:
            raise ProtocolError("commitment must be 32 bytes")
        self._peer_commitment = commitment
        self._emit(_ROUND_REVEAL, inputs=self._inputs, nonce=self._nonce)

    def _on_reveal(self, message: Dict[str, Any]) -> None:
        if self._peer_commitment is None:
            raise ProtocolError("reveal before commitment")
        inputs = message.get("inputs")
        nonce = message.get("nonce")
        if not isinstance(nonce, bytes) or not isinstance(inputs, dict):
            raise ProtocolError("malformed reveal")
        try:
            peer_inputs = _check_inputs(self._counterpart, inputs)
        except ValueError as exc:
            raise ProtocolError(str(exc)) from exc
        if _commitment(peer_inputs, nonce) != self._peer_commitment:
            raise ProtocolError("reveal does not match commitment")

        if self._party == PARTY_REQUIREMENT:
            requirement, subject = self._inputs, peer_inputs
        else:
            requirement, subject = peer_inputs, self._inputs
        self._result = {
            "ageValid": int(subject["age"] >= requirement["minAge"]),
            "residencyValid": int(subject["residency"] == requirement["requiredResidency"]),
            "nameValid": int(subject["nameHash"] == requirement["requiredNameHash"]),
        }
        logger.debug("mock engine %s finished", self._party)
        self._done.set()

    async def output(self) -> Dict[str, int]:
        await self._done.wait()
        return dict(self._result)


class MockPredicateEngine:
    """
    Insecure stand-in for a two-party garbled-circuit engine.

    Notes:
    - Inputs are revealed to the counterpart; there is no privacy at all.
    - Message flow and result shape match the real engine contract.
    """

    # commit + reveal in both directions
    expected_total_bytes = 400

    def join(self, party: str, inputs: Mapping[str, Any], send: SendCallback) -> MockPredicateSession:
        return MockPredicateSession(party, inputs, send)
