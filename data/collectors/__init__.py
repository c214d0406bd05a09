"""
Data Collectors - one fetcher per BlitzProof scoring category

DataCollectionService owns the shared HTTP session and runs the six
collectors concurrently for a score computation.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp
from loguru import logger

from .base import BaseCollector, CollectorResult, with_default
from .community_data import CommunityData, CommunityDataCollector
from .fundamental_data import FundamentalData, FundamentalDataCollector, VestingEntry
from .governance_data import GovernanceData, GovernanceDataCollector
from .market_data import MarketData, MarketDataCollector
from .operational_data import OperationalData, OperationalDataCollector
from .security_data import SecurityData, SecurityDataCollector, Vulnerability


@dataclass
class CollectedData:
    """Raw inputs for one score computation"""
    market: MarketData
    security: SecurityData
    governance: GovernanceData
    fundamental: FundamentalData
    community: CommunityData
    operational: OperationalData

    @classmethod
    def defaults(cls) -> "CollectedData":
        return cls(
            market=MarketData.default(),
            security=SecurityData.default(),
            governance=GovernanceData.default(),
            fundamental=FundamentalData.default(),
            community=CommunityData.default(),
            operational=OperationalData.default(),
        )


class DataCollectionService:
    """Facade over the six category collectors"""

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: Optional[aiohttp.ClientSession] = None):
        self.config = config or {}
        self.session = session
        self._owns_session = session is None
        self._build_collectors()

    def _build_collectors(self) -> None:
        self.market = MarketDataCollector(self.session, self.config)
        self.security = SecurityDataCollector(self.session, self.config)
        self.governance = GovernanceDataCollector(self.session, self.config)
        self.fundamental = FundamentalDataCollector(self.session, self.config)
        self.community = CommunityDataCollector(self.session, self.config)
        self.operational = OperationalDataCollector(self.session, self.config)

    async def initialize(self) -> None:
        """Open the shared HTTP session"""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=float(self.config.get("collector_timeout", 10)))
            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"Accept": "application/json"}
            )
            self._owns_session = True
            self._build_collectors()
        logger.info("Data collection service ready")

    async def cleanup(self) -> None:
        """Cleanup resources"""
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    async def fetch_market_data(self, token_id: str) -> MarketData:
        return await self.market.fetch(token_id)

    async def fetch_security_data(self, contract_address: str) -> SecurityData:
        return await self.security.fetch(contract_address, contract_address)

    async def fetch_governance_data(self, token_id: str) -> GovernanceData:
        return await self.governance.fetch(token_id)

    async def fetch_fundamental_data(self, token_id: str) -> FundamentalData:
        return await self.fundamental.fetch(token_id)

    async def fetch_community_data(self, token_id: str) -> CommunityData:
        return await self.community.fetch(token_id)

    async def fetch_operational_data(self, token_id: str) -> OperationalData:
        return await self.operational.fetch(token_id)

    async def collect_all(self, token_id: str, contract_address: Optional[str] = None) -> CollectedData:
        """Run all six collectors concurrently; each settles to data or its default"""
        market, security, governance, fundamental, community, operational = await asyncio.gather(
            self.fetch_market_data(token_id),
            self.fetch_security_data(contract_address or token_id),
            self.fetch_governance_data(token_id),
            self.fetch_fundamental_data(token_id),
            self.fetch_community_data(token_id),
            self.fetch_operational_data(token_id),
        )
        return CollectedData(
            market=market,
            security=security,
            governance=governance,
            fundamental=fundamental,
            community=community,
            operational=operational,
        )


__all__ = [
    'BaseCollector',
    'CollectorResult',
    'with_default',
    'CollectedData',
    'DataCollectionService',
    'MarketData',
    'MarketDataCollector',
    'SecurityData',
    'SecurityDataCollector',
    'Vulnerability',
    'GovernanceData',
    'GovernanceDataCollector',
    'FundamentalData',
    'FundamentalDataCollector',
    'VestingEntry',
    'CommunityData',
    'CommunityDataCollector',
    'OperationalData',
    'OperationalDataCollector',
]
