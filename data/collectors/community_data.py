"""
Community Data Collector - social reach and developer activity

Follower and contributor counts come from CoinGecko's community and developer
sections. Discord size, engagement and growth have no public feed yet.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger

from utils.constants import COINGECKO_API, COINGECKO_PRO_API, Category
from utils.errors import CollectorError
from utils.helpers import safe_int
from .base import BaseCollector


@dataclass
class CommunityData:
    """Community size and health"""
    twitter_followers: int = 0
    telegram_members: int = 0
    discord_members: int = 0
    github_contributors: int = 0
    social_engagement: float = 0.0
    documentation_quality: float = 0.0
    community_growth: float = 0.0  # rate, may be negative

    @classmethod
    def default(cls) -> "CommunityData":
        return cls()


class CommunityDataCollector(BaseCollector[CommunityData]):

    category = Category.COMMUNITY

    BASELINE_DOCUMENTATION = 50.0

    def __init__(self, session, config: Optional[Dict[str, Any]] = None):
        super().__init__(session, config)
        self.api_key = self.config.get("coingecko_api_key") or ""
        self.base_url = COINGECKO_PRO_API if self.api_key else COINGECKO_API

    def default(self) -> CommunityData:
        return CommunityData.default()

    async def collect(self, token_id: str, contract_address: Optional[str] = None) -> CommunityData:
        headers = {"x-cg-pro-api-key": self.api_key} if self.api_key else None
        params = {
            "localization": "false",
            "tickers": "false",
            "market_data": "false",
            "community_data": "true",
            "developer_data": "true",
        }
        data = await self._get_json(f"{self.base_url}/coins/{token_id}", params=params, headers=headers)
        if not isinstance(data, dict):
            raise CollectorError(self.category.value, "unexpected CoinGecko payload")

        community = data.get("community_data") or {}
        developer = data.get("developer_data") or {}

        result = CommunityData(
            twitter_followers=safe_int(community.get("twitter_followers")),
            telegram_members=safe_int(community.get("telegram_channel_user_count")),
            discord_members=0,
            github_contributors=safe_int(developer.get("pull_request_contributors")),
            social_engagement=0.0,
            documentation_quality=await self._assess_documentation(token_id),
            community_growth=0.0,
        )
        logger.debug(
            f"Community data for {token_id}: twitter={result.twitter_followers} "
            f"contributors={result.github_contributors}"
        )
        return result

    async def _assess_documentation(self, token_id: str) -> float:
        return self.BASELINE_DOCUMENTATION
