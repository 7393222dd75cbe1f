"""Wallet forensics: burner-wallet detection and donor wash trading."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from app.clients.etherscan_client import EtherscanClient, is_valid_address
from app.collectors.base import BaseCollector, CollectorResult
from app.core.config import ForensicsConfig
from app.core.errors import ErrorCode, ForensicsError
from app.schemas.v1.forensics import BlockchainForensics


@dataclass
class BlockchainInput:
    creator_address: str
    donor_addresses: list[str] = field(default_factory=list)


def is_burner_wallet(age_hours: int, nonce: int, config: ForensicsConfig) -> bool:
    return age_hours < config.burner_max_age_hours and nonce < config.burner_max_nonce


class BlockchainCollector(BaseCollector[BlockchainInput, BlockchainForensics | None]):
    """All-or-nothing: any lookup failure leaves the whole field ``None``."""

    def __init__(self, client: EtherscanClient, config: ForensicsConfig) -> None:
        self._client = client
        self._config = config

    @property
    def name(self) -> str:
        return "blockchain"

    async def collect(self, data: BlockchainInput) -> CollectorResult[BlockchainForensics | None]:
        if not is_valid_address(data.creator_address):
            return CollectorResult.degraded(
                None,
                ForensicsError(
                    ErrorCode.BLOCKCHAIN_INVALID_ADDRESS,
                    f"Invalid Ethereum address: {data.creator_address}",
                    service="etherscan",
                    operation="collect",
                    context={"address": data.creator_address},
                ),
            )

        # A failed lookup cancels its sibling.
        error: ForensicsError | None = None
        try:
            async with asyncio.TaskGroup() as tg:
                history_task = tg.create_task(
                    self._client.get_wallet_history(data.creator_address)
                )
                wash_task = tg.create_task(
                    self._client.detect_wash_trading(
                        data.creator_address,
                        data.donor_addresses,
                        max_donors=self._config.max_donors_checked,
                    )
                )
        except* ForensicsError as group:
            error = group.exceptions[0]
        if error is not None:
            return CollectorResult.degraded(None, error)

        history = history_task.result()
        wash = wash_task.result()

        return CollectorResult.success(
            BlockchainForensics(
                nonce=history.nonce,
                age_hours=history.age_hours,
                wash_trading_score=wash.score,
                is_burner_wallet=is_burner_wallet(history.age_hours, history.nonce, self._config),
            )
        )
