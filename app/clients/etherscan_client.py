"""Etherscan v2 client for wallet forensics.

Every call goes through ``RetryExecutor`` so HTTP 429 backs off before the
request is retried. A provider envelope whose ``status`` is not ``"1"`` means
"no data"; only HTTP or transport failures are errors.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx
import structlog

from app.core.config import EtherscanConfig
from app.core.errors import ErrorCode, ForensicsError
from app.core.tracing import get_tracing_headers
from app.utils.clock import hours_since
from app.utils.retry import RATE_LIMITED, RetryExecutor

logger = structlog.get_logger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_address(address: str) -> bool:
    return bool(ADDRESS_PATTERN.match(address or ""))


@dataclass(frozen=True)
class WalletHistory:
    nonce: int
    age_hours: int
    balance: str
    first_tx_date: str | None = None


@dataclass(frozen=True)
class WashTradingResult:
    score: int
    flagged_donors: list[str]
    total_checked: int


def wash_trading_score(flagged: int, checked: int) -> int:
    """Percentage of checked donors first funded by the creator."""
    if checked == 0:
        return 0
    return round(flagged / checked * 100)


class EtherscanClient:
    """HTTP client for the Etherscan multichain API."""

    def __init__(
        self,
        config: EtherscanConfig,
        http_client: httpx.AsyncClient | None = None,
        retry_executor: RetryExecutor | None = None,
    ) -> None:
        self._config = config
        self._client = http_client
        self._retry = retry_executor or RetryExecutor("etherscan", max_attempts=config.max_attempts)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_seconds)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _error(self, code: ErrorCode, message: str, operation: str, **context: Any) -> ForensicsError:
        return ForensicsError(code, message, service="etherscan", operation=operation, context=context)

    async def _query(self, operation: str, params: dict[str, str]) -> dict[str, Any]:
        query = {
            "chainid": str(self._config.chain_id),
            "apikey": self._config.api_key.get_secret_value(),
            **params,
        }
        client = self._get_client()

        async def call() -> httpx.Response:
            return await client.get(
                self._config.base_url, params=query, headers=get_tracing_headers()
            )

        try:
            response = await self._retry.execute(call)
        except httpx.HTTPError as e:
            raise self._error(
                ErrorCode.BLOCKCHAIN_API_ERROR,
                f"Etherscan {operation} request failed: {e}",
                operation,
            ) from e

        if response.status_code == RATE_LIMITED:
            raise self._error(
                ErrorCode.BLOCKCHAIN_RATE_LIMITED,
                f"Etherscan {operation} rate limited",
                operation,
            )
        if not response.is_success:
            raise self._error(
                ErrorCode.BLOCKCHAIN_API_ERROR,
                f"Etherscan {operation} API error: HTTP {response.status_code}",
                operation,
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise self._error(
                ErrorCode.BLOCKCHAIN_API_ERROR, f"Etherscan {operation} returned invalid JSON", operation
            ) from e
        return payload if isinstance(payload, dict) else {}

    def _validate(self, address: str, operation: str) -> None:
        if not is_valid_address(address):
            raise self._error(
                ErrorCode.BLOCKCHAIN_INVALID_ADDRESS,
                f"Invalid Ethereum address: {address}",
                operation,
                address=address,
            )

    async def get_first_transaction(self, address: str) -> dict[str, Any] | None:
        """Earliest transaction of ``address``, or ``None`` when it has none."""
        self._validate(address, "txlist")
        payload = await self._query(
            "txlist",
            {
                "module": "account",
                "action": "txlist",
                "address": address,
                "startblock": "0",
                "endblock": "99999999",
                "page": "1",
                "offset": "1",
                "sort": "asc",
            },
        )
        result = payload.get("result")
        if payload.get("status") == "1" and isinstance(result, list) and result:
            return result[0]
        return None

    async def get_balance(self, address: str) -> str:
        self._validate(address, "balance")
        payload = await self._query(
            "balance",
            {"module": "account", "action": "balance", "address": address, "tag": "latest"},
        )
        if payload.get("status") == "1" and payload.get("result"):
            return str(payload["result"])
        return "0"

    async def get_nonce(self, address: str) -> int:
        self._validate(address, "nonce")
        payload = await self._query(
            "nonce",
            {
                "module": "proxy",
                "action": "eth_getTransactionCount",
                "address": address,
                "tag": "latest",
            },
        )
        raw = payload.get("result")
        if not isinstance(raw, str) or not raw.startswith("0x"):
            return 0
        try:
            return int(raw, 16)
        except ValueError:
            return 0

    async def get_wallet_history(self, address: str) -> WalletHistory:
        """Nonce, age and balance used for burner-wallet detection."""
        self._validate(address, "wallet_history")
        first_tx, balance = await asyncio.gather(
            self.get_first_transaction(address),
            self.get_balance(address),
        )

        age_hours = 0
        first_tx_date: str | None = None
        if first_tx is not None:
            try:
                timestamp = int(first_tx.get("timeStamp", ""))
            except ValueError:
                timestamp = None
            if timestamp is not None:
                first_tx_date = datetime.fromtimestamp(timestamp, UTC).isoformat()
                age_hours = hours_since(timestamp)

        nonce = await self.get_nonce(address)
        return WalletHistory(
            nonce=nonce,
            age_hours=age_hours,
            balance=balance,
            first_tx_date=first_tx_date,
        )

    async def detect_wash_trading(
        self,
        creator_address: str,
        donor_addresses: list[str],
        max_donors: int = 5,
    ) -> WashTradingResult:
        """Flag donors whose first incoming funds came from the creator."""
        creator = creator_address.lower()
        to_check = donor_addresses[:max_donors]
        flagged: list[str] = []

        for donor in to_check:
            # Malformed donors count as checked but never flagged.
            if not is_valid_address(donor):
                logger.info("Skipping malformed donor address", donor=donor)
                continue
            first_tx = await self.get_first_transaction(donor)
            if first_tx is not None and str(first_tx.get("from", "")).lower() == creator:
                flagged.append(donor)

        return WashTradingResult(
            score=wash_trading_score(len(flagged), len(to_check)),
            flagged_donors=flagged,
            total_checked=len(to_check),
        )
