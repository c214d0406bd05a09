"""
Fundamental Data Collector - tokenomics, team, partnerships and roadmap

The research feeds behind these signals are manual today, so each analyzer
returns the neutral baseline that the scoring model was calibrated on.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from utils.constants import Category
from .base import BaseCollector


@dataclass
class VestingEntry:
    """One token unlock"""
    amount: float
    unlock_date: datetime
    percentage: float


@dataclass
class FundamentalData:
    """Project fundamentals, 0-100 unless noted"""
    tokenomics_health: float = 0.0
    team_credibility: float = 0.0
    partnership_count: int = 0
    utility_score: float = 0.0
    roadmap_progress: float = 0.0
    vesting_schedule: List[VestingEntry] = field(default_factory=list)

    @classmethod
    def default(cls) -> "FundamentalData":
        return cls()


class FundamentalDataCollector(BaseCollector[FundamentalData]):

    category = Category.FUNDAMENTAL

    BASELINE_SCORE = 50.0

    def default(self) -> FundamentalData:
        return FundamentalData.default()

    async def collect(self, token_id: str, contract_address: Optional[str] = None) -> FundamentalData:
        tokenomics = await self._analyze_tokenomics(token_id)

        return FundamentalData(
            tokenomics_health=tokenomics["health_score"],
            team_credibility=await self._fetch_team_credibility(token_id),
            partnership_count=await self._count_partnerships(token_id),
            utility_score=await self._analyze_utility(token_id),
            roadmap_progress=await self._get_roadmap_progress(token_id),
            vesting_schedule=tokenomics["vesting_schedule"],
        )

    async def _analyze_tokenomics(self, token_id: str) -> Dict[str, Any]:
        return {"health_score": self.BASELINE_SCORE, "vesting_schedule": []}

    async def _fetch_team_credibility(self, token_id: str) -> float:
        return self.BASELINE_SCORE

    async def _count_partnerships(self, token_id: str) -> int:
        return 0

    async def _analyze_utility(self, token_id: str) -> float:
        return self.BASELINE_SCORE

    async def _get_roadmap_progress(self, token_id: str) -> float:
        return self.BASELINE_SCORE
