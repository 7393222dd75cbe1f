"""Unit tests for the Etherscan client."""

import time

import httpx
import pytest
from pydantic import SecretStr

from app.clients.etherscan_client import EtherscanClient, is_valid_address, wash_trading_score
from app.core.config import EtherscanConfig
from app.core.errors import ErrorCode, ForensicsError
from app.utils.retry import RetryExecutor

CREATOR = "0x" + "a" * 40
DONOR_A = "0x" + "b" * 40
DONOR_B = "0x" + "c" * 40


def _client(handler, recorded_sleeps) -> EtherscanClient:
    config = EtherscanConfig(api_key=SecretStr("key"))
    return EtherscanClient(
        config,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        retry_executor=RetryExecutor("etherscan", max_attempts=3, sleep=recorded_sleeps),
    )


def _wallet_handler(first_tx_timestamp: int | None, nonce_hex: str, calls: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        if calls is not None:
            calls.append(dict(params))
        assert params["chainid"] == "1"
        assert params["apikey"] == "key"
        action = params["action"]
        if action == "txlist":
            if first_tx_timestamp is None:
                return httpx.Response(
                    200, json={"status": "0", "message": "No transactions found", "result": []}
                )
            return httpx.Response(
                200,
                json={
                    "status": "1",
                    "result": [{"timeStamp": str(first_tx_timestamp), "from": DONOR_A}],
                },
            )
        if action == "balance":
            return httpx.Response(200, json={"status": "1", "result": "1000"})
        if action == "eth_getTransactionCount":
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": nonce_hex})
        return httpx.Response(400)

    return handler


def test_is_valid_address():
    assert is_valid_address(CREATOR)
    assert is_valid_address("0x" + "AbC123" * 6 + "dEaD")
    assert not is_valid_address("0x123")
    assert not is_valid_address("a" * 42)
    assert not is_valid_address("0x" + "g" * 40)


def test_wash_trading_score():
    assert wash_trading_score(0, 0) == 0
    assert wash_trading_score(1, 5) == 20
    assert wash_trading_score(2, 3) == 67
    assert wash_trading_score(5, 5) == 100


@pytest.mark.asyncio
async def test_wallet_history(recorded_sleeps):
    calls: list[dict] = []
    two_hours_ago = int(time.time()) - 2 * 3600 - 60
    client = _client(_wallet_handler(two_hours_ago, "0x1a", calls), recorded_sleeps)

    history = await client.get_wallet_history(CREATOR)

    assert history.nonce == 26
    assert history.age_hours == 2
    assert history.balance == "1000"
    assert history.first_tx_date is not None
    txlist = next(call for call in calls if call["action"] == "txlist")
    assert txlist["offset"] == "1"
    assert txlist["sort"] == "asc"
    assert txlist["page"] == "1"


@pytest.mark.asyncio
async def test_wallet_without_transactions_has_zero_age(recorded_sleeps):
    client = _client(_wallet_handler(None, "0x0"), recorded_sleeps)

    history = await client.get_wallet_history(CREATOR)

    assert history.age_hours == 0
    assert history.nonce == 0
    assert history.first_tx_date is None


@pytest.mark.asyncio
async def test_invalid_address_rejected_without_request(recorded_sleeps):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(ForensicsError) as exc_info:
        await _client(handler, recorded_sleeps).get_wallet_history("0xnothex")

    assert exc_info.value.code == ErrorCode.BLOCKCHAIN_INVALID_ADDRESS
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_http_error_raises_api_error(recorded_sleeps):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with pytest.raises(ForensicsError) as exc_info:
        await _client(handler, recorded_sleeps).get_first_transaction(CREATOR)

    assert exc_info.value.code == ErrorCode.BLOCKCHAIN_API_ERROR


@pytest.mark.asyncio
async def test_persistent_rate_limit_raises_after_backoff(recorded_sleeps):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429)

    with pytest.raises(ForensicsError) as exc_info:
        await _client(handler, recorded_sleeps).get_balance(CREATOR)

    assert exc_info.value.code == ErrorCode.BLOCKCHAIN_RATE_LIMITED
    assert exc_info.value.status_code == 429
    assert recorded_sleeps.delays == [1, 2, 4]


@pytest.mark.asyncio
async def test_detect_wash_trading_flags_donors_funded_by_creator(recorded_sleeps):
    first_senders = {DONOR_A: CREATOR.upper().replace("0X", "0x"), DONOR_B: "0x" + "d" * 40}

    def handler(request: httpx.Request) -> httpx.Response:
        address = request.url.params["address"]
        return httpx.Response(
            200, json={"status": "1", "result": [{"from": first_senders[address], "timeStamp": "1"}]}
        )

    result = await _client(handler, recorded_sleeps).detect_wash_trading(CREATOR, [DONOR_A, DONOR_B])

    assert result.flagged_donors == [DONOR_A]
    assert result.total_checked == 2
    assert result.score == 50


@pytest.mark.asyncio
async def test_detect_wash_trading_checks_at_most_five_donors(recorded_sleeps):
    checked: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        checked.append(request.url.params["address"])
        return httpx.Response(200, json={"status": "0", "result": []})

    donors = ["0x" + f"{i:040x}" for i in range(1, 9)]
    result = await _client(handler, recorded_sleeps).detect_wash_trading(CREATOR, donors)

    assert len(checked) == 5
    assert result.total_checked == 5
    assert result.score == 0


@pytest.mark.asyncio
async def test_detect_wash_trading_counts_malformed_donor_as_unflagged(recorded_sleeps):
    queried: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        queried.append(request.url.params["address"])
        return httpx.Response(200, json={"status": "1", "result": [{"from": CREATOR, "timeStamp": "1"}]})

    result = await _client(handler, recorded_sleeps).detect_wash_trading(
        CREATOR, ["not-an-address", DONOR_A]
    )

    assert queried == [DONOR_A]
    assert result.flagged_donors == [DONOR_A]
    assert result.total_checked == 2
    assert result.score == 50
