import pytest

from conftest import DESTINATION, StubNode

from ton_gateway.config import GatewayConfig
from ton_gateway.errors import NotFoundError, ValidationError
from ton_gateway.services.queries import get_account_history, get_transaction
from ton_gateway.services.validators import parse_address, raw_address

TX_HASH = "AB" * 32


@pytest.mark.asyncio
async def test_get_transaction_returns_first_match():
    node = StubNode(transactions=[{"hash": "x", "lt": "1"}])
    tx = await get_transaction(TX_HASH, client=node)
    assert tx == {"hash": "x", "lt": "1"}
    assert node.calls == [("fetch_transaction_by_hash", "ab" * 32)]


@pytest.mark.asyncio
async def test_get_transaction_not_found():
    with pytest.raises(NotFoundError) as excinfo:
        await get_transaction(TX_HASH, client=StubNode())
    assert excinfo.value.message == "No transaction found"


@pytest.mark.asyncio
async def test_get_transaction_rejects_bad_hash():
    node = StubNode()
    with pytest.raises(ValidationError):
        await get_transaction("nope", client=node)
    assert node.calls == []


@pytest.mark.asyncio
async def test_history_uses_raw_address_and_page_size():
    history = [{"lt": str(i)} for i in range(3)]
    node = StubNode(history=history)
    result = await get_account_history(DESTINATION, client=node, config=GatewayConfig(api_key=None))
    assert result == history
    assert node.calls == [("fetch_transactions", raw_address(parse_address(DESTINATION)), 50)]


@pytest.mark.asyncio
async def test_history_is_capped_at_page_size():
    node = StubNode(history=[{"lt": str(i)} for i in range(10)])
    config = GatewayConfig(api_key=None, history_page_size=4)
    result = await get_account_history(DESTINATION, client=node, config=config)
    assert len(result) == 4


@pytest.mark.asyncio
async def test_empty_history_not_found():
    with pytest.raises(NotFoundError) as excinfo:
        await get_account_history(DESTINATION, client=StubNode())
    assert excinfo.value.message == "No transaction found for this wallet"


@pytest.mark.asyncio
async def test_history_rejects_invalid_address():
    with pytest.raises(ValidationError):
        await get_account_history("0:xyz", client=StubNode())
