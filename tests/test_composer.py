import base64

import pytest

from conftest import DESTINATION, PUBLIC_KEY_B64, StubNode

from ton_gateway.cells import from_boc
from ton_gateway.config import GatewayConfig
from ton_gateway.errors import NetworkError, ValidationError
from ton_gateway.services.composer import NO_EXPIRY, FeeEstimate, compose_transfer
from ton_gateway.services.session import build_session
from ton_gateway.services.validators import format_address, parse_address

CONFIG = GatewayConfig(api_key=None)


async def _session(node):
    return await build_session(PUBLIC_KEY_B64, client=node, config=CONFIG)


def _read_query(body_b64):
    reader = from_boc(base64.b64decode(body_b64)).begin_parse()
    signature = reader.load_bytes(64)
    return {
        "signature": signature,
        "subwallet_id": reader.load_uint(32),
        "valid_until": reader.load_uint(32),
        "seqno": reader.load_uint(32),
        "send_mode": reader.load_uint(8),
        "message": reader.load_ref(),
    }


@pytest.mark.asyncio
async def test_compose_attaches_fee_and_seqno():
    node = StubNode(seqno=5)
    session = await _session(node)
    message = await compose_transfer(
        session, DESTINATION, 1_000_000_000, client=node, config=CONFIG, now=1_700_000_000
    )

    assert message.seqno == 5
    assert message.amount == 1_000_000_000
    assert message.destination == parse_address(DESTINATION)
    assert message.valid_until == 1_700_000_000 + CONFIG.message_ttl
    assert message.fee == FeeEstimate(in_fwd_fee=1000, storage_fee=10, gas_fee=3000, fwd_fee=0)
    assert message.fee.as_dict()["total"] == 4010
    assert message.warnings == []

    request = node.fee_requests[0]
    assert request["address"] == format_address(session.address)
    assert request["init_code"] == ""
    query = _read_query(request["body"])
    assert query["signature"] == bytes(64)
    assert query["subwallet_id"] == CONFIG.subwallet_id
    assert query["seqno"] == 5
    assert query["send_mode"] == 3


@pytest.mark.asyncio
async def test_internal_message_carries_destination_and_amount():
    node = StubNode(seqno=2)
    session = await _session(node)
    await compose_transfer(session, DESTINATION, 7, client=node, config=CONFIG, now=0)

    internal = _read_query(node.fee_requests[0]["body"])["message"].begin_parse()
    assert internal.load_bit() == 0
    assert internal.load_bit() == 1  # ihr_disabled
    assert internal.load_bit() == 1  # bounce
    assert internal.load_bit() == 0
    assert internal.load_address() is None
    assert internal.load_address() == parse_address(DESTINATION)
    assert internal.load_coins() == 7


@pytest.mark.asyncio
async def test_undeployed_wallet_sends_state_init_and_never_expires():
    node = StubNode(deployed=False)
    session = await _session(node)
    message = await compose_transfer(session, DESTINATION, 1, client=node, config=CONFIG)

    assert message.seqno == 0
    assert message.valid_until == NO_EXPIRY
    request = node.fee_requests[0]
    assert request["init_code"]
    assert request["init_data"]
    assert from_boc(base64.b64decode(request["init_code"])) == session.code


@pytest.mark.asyncio
async def test_fee_failure_becomes_warning():
    node = StubNode(seqno=1, fee_error=NetworkError("Node unreachable"))
    session = await _session(node)
    message = await compose_transfer(session, DESTINATION, 1, client=node, config=CONFIG)

    assert message.fee is None
    assert message.warnings == ["Fee estimation failed: Node unreachable"]


@pytest.mark.asyncio
async def test_invalid_input_rejected_before_estimate():
    node = StubNode(seqno=1)
    session = await _session(node)
    with pytest.raises(ValidationError):
        await compose_transfer(session, "not-an-address", 1, client=node, config=CONFIG)
    with pytest.raises(ValidationError):
        await compose_transfer(session, DESTINATION, -1, client=node, config=CONFIG)
    assert node.fee_requests == []


def test_fee_estimate_rejects_malformed_result():
    with pytest.raises(NetworkError):
        FeeEstimate.from_result({})
    with pytest.raises(NetworkError):
        FeeEstimate.from_result({"source_fees": {"gas_fee": "lots"}})
    assert FeeEstimate.from_result({"source_fees": {"gas_fee": "5"}}).total == 5


@pytest.mark.asyncio
async def test_non_bounceable_destination_clears_bounce_bit():
    node = StubNode(seqno=2)
    session = await _session(node)
    target = format_address(parse_address(DESTINATION), bounceable=False)
    await compose_transfer(session, target, 7, client=node, config=CONFIG, now=0)

    internal = _read_query(node.fee_requests[0]["body"])["message"].begin_parse()
    internal.skip_bits(2)
    assert internal.load_bit() == 0
