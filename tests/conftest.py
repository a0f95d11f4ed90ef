import pytest

from credproof import feature_flags
from credproof.disclosure import IdentityData, IssuerKey, issue_credential
from credproof.disclosure.security import generate_join_code
from credproof.session.channel import open_loopback_pair
from credproof.session.transport import SessionTransport


@pytest.fixture(autouse=True)
def default_flags(monkeypatch: pytest.MonkeyPatch):
    feature_flags.set_engine_name(None)
    feature_flags.set_issuer_policy(None)
    monkeypatch.delenv("CREDPROOF_ENGINE", raising=False)
    monkeypatch.delenv("CREDPROOF_ISSUER_POLICY", raising=False)
    yield


@pytest.fixture
def issuer() -> IssuerKey:
    return IssuerKey.generate()


@pytest.fixture
def alice_record(issuer):
    identity = IdentityData(age=25, residency="USA", name="Alice")
    return issue_credential(issuer, identity.to_attributes())


@pytest.fixture
async def paired(nursery):
    """(verifier, holder) transports over a fresh loopback pairing."""
    verifier_channel, holder_channel = open_loopback_pair(generate_join_code())
    verifier = SessionTransport(verifier_channel)
    holder = SessionTransport(holder_channel)
    for transport in (verifier, holder):
        await transport.wait_ready()
        nursery.start_soon(transport.pump)
    yield verifier, holder
    await verifier.aclose()
    await holder.aclose()
