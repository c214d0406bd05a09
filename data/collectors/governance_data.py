"""
Governance Data Collector - Snapshot proposals and treasury controls
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from loguru import logger

from utils.constants import SNAPSHOT_GRAPHQL_API, SNAPSHOT_PROPOSALS_QUERY, Category
from utils.errors import CollectorError
from utils.helpers import safe_float
from .base import BaseCollector


@dataclass
class GovernanceData:
    """On-chain/off-chain governance signals"""
    voting_participation: float = 0.0
    power_distribution: float = 0.0
    proposal_count: int = 0
    has_multi_sig: bool = False
    has_timelock: bool = False
    treasury_value: float = 0.0  # USD

    @classmethod
    def default(cls) -> "GovernanceData":
        return cls()


def calculate_voting_participation(proposals: List[Dict[str, Any]]) -> float:
    """Average votes per proposal, scaled by 10 and capped at 100"""
    if not proposals:
        return 0.0
    total_votes = sum(safe_float(p.get("votes")) for p in proposals)
    return min(100.0, (total_votes / len(proposals)) * 10)


class GovernanceDataCollector(BaseCollector[GovernanceData]):
    """Reads proposal activity for the token's Snapshot space"""

    category = Category.GOVERNANCE

    # Placeholder until holder-distribution analysis is wired in
    NEUTRAL_POWER_DISTRIBUTION = 50.0

    def default(self) -> GovernanceData:
        return GovernanceData.default()

    async def collect(self, token_id: str, contract_address: Optional[str] = None) -> GovernanceData:
        proposals = await self._fetch_proposals(token_id)

        return GovernanceData(
            voting_participation=calculate_voting_participation(proposals),
            power_distribution=self.NEUTRAL_POWER_DISTRIBUTION,
            proposal_count=len(proposals),
            has_multi_sig=await self._check_multi_sig(token_id),
            has_timelock=await self._check_timelock(token_id),
            treasury_value=await self._get_treasury_value(token_id),
        )

    async def _fetch_proposals(self, space: str) -> List[Dict[str, Any]]:
        payload = await self._post_json(
            SNAPSHOT_GRAPHQL_API,
            {"query": SNAPSHOT_PROPOSALS_QUERY, "variables": {"space": space}}
        )
        if not isinstance(payload, dict):
            raise CollectorError(self.category.value, "unexpected Snapshot payload")
        if payload.get("errors"):
            raise CollectorError(self.category.value, f"Snapshot: {payload['errors']}")

        proposals = (payload.get("data") or {}).get("proposals") or []
        logger.debug(f"Snapshot space {space}: {len(proposals)} proposals")
        return proposals

    async def _check_multi_sig(self, token_id: str) -> bool:
        return False

    async def _check_timelock(self, token_id: str) -> bool:
        return False

    async def _get_treasury_value(self, token_id: str) -> float:
        return 0.0
