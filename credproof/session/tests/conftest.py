import pytest

from credproof.session.channel import open_loopback_pair
from credproof.session.transport import SessionTransport

JOIN_CODE = "gezdgnbvgy3tqojqgezdgnbvgy"


@pytest.fixture
async def transports(nursery):
    """Verifier and holder transports over a loopback pairing, pumps running."""
    verifier_channel, holder_channel = open_loopback_pair(JOIN_CODE)
    verifier = SessionTransport(verifier_channel)
    holder = SessionTransport(holder_channel)
    for transport in (verifier, holder):
        await transport.wait_ready()
        nursery.start_soon(transport.pump)
    yield verifier, holder
    await verifier.aclose()
    await holder.aclose()
