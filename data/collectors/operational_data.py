"""
Operational Data Collector - network performance and infrastructure
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from utils.constants import Category
from .base import BaseCollector


@dataclass
class OperationalData:
    """Network/infrastructure signals"""
    uptime: float = 0.0               # percent
    transaction_speed: float = 0.0    # seconds, lower is better
    network_security: float = 0.0
    upgrade_capability: float = 0.0
    emergency_procedures: bool = False

    @classmethod
    def default(cls) -> "OperationalData":
        return cls()


class OperationalDataCollector(BaseCollector[OperationalData]):
    """Baseline network profile until per-chain monitors report in"""

    category = Category.OPERATIONAL

    def default(self) -> OperationalData:
        return OperationalData.default()

    async def collect(self, token_id: str, contract_address: Optional[str] = None) -> OperationalData:
        network = await self._fetch_network_metrics(token_id)
        infrastructure = await self._analyze_infrastructure(token_id)

        return OperationalData(
            uptime=network["uptime"],
            transaction_speed=network["avg_transaction_time"],
            network_security=network["security_score"],
            upgrade_capability=infrastructure["upgrade_capability"],
            emergency_procedures=infrastructure["has_emergency_procedures"],
        )

    async def _fetch_network_metrics(self, token_id: str) -> Dict[str, Any]:
        return {"uptime": 99.9, "avg_transaction_time": 15.0, "security_score": 75.0}

    async def _analyze_infrastructure(self, token_id: str) -> Dict[str, Any]:
        return {"upgrade_capability": 50.0, "has_emergency_procedures": False}
