"""
Security Data Collector - contract verification and code heuristics

Source code comes from Etherscan. Vulnerability findings and audit status are
supplied by external analyzers; here they are stubs that report no findings
and an unaudited contract.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from utils.constants import ETHERSCAN_API, AuditStatus, Category
from utils.errors import CollectorError
from utils.helpers import clamp
from .base import BaseCollector


@dataclass
class Vulnerability:
    """A single analyzer finding"""
    type: str
    severity: str  # critical | high | medium | low
    description: str = ""
    confidence: float = 100.0  # 0-100


@dataclass
class SecurityData:
    """Contract security signals"""
    vulnerabilities: List[Vulnerability] = field(default_factory=list)
    audit_status: str = AuditStatus.UNAUDITED.value
    audit_score: float = 0.0
    code_quality: float = 0.0
    gas_optimization: float = 0.0

    @classmethod
    def default(cls) -> "SecurityData":
        return cls()


# (pattern, score delta)
CODE_QUALITY_PATTERNS: Tuple[Tuple[str, int], ...] = (
    ("SafeMath", 10),
    ("ReentrancyGuard", 10),
    ("Ownable", 5),
    ("selfdestruct", -20),
    ("delegatecall", -15),
    ("assembly", -10),
)

GAS_PATTERNS: Tuple[Tuple[str, int], ...] = (
    ("unchecked", 10),
    ("packed structs", 10),
)


def score_source(source_code: str, patterns: Tuple[Tuple[str, int], ...]) -> float:
    """Start at 100, apply pattern deltas, clamp to 0-100 (empty source scores 0)"""
    if not source_code:
        return 0.0
    score = 100
    for pattern, delta in patterns:
        if pattern in source_code:
            score += delta
    return clamp(score)


class SecurityDataCollector(BaseCollector[SecurityData]):
    """Fetches verified source from Etherscan and derives security signals"""

    category = Category.CODE_SECURITY

    def __init__(self, session, config: Optional[Dict[str, Any]] = None):
        super().__init__(session, config)
        self.api_key = self.config.get("etherscan_api_key") or ""

    def default(self) -> SecurityData:
        return SecurityData.default()

    async def collect(self, token_id: str, contract_address: Optional[str] = None) -> SecurityData:
        address = contract_address or token_id
        contract = await self._fetch_contract_source(address)
        source_code = contract.get("SourceCode") or ""

        vulnerabilities = await self._analyze_contract_security(address, source_code)
        audit_status, audit_score = await self._determine_audit_status(address)

        return SecurityData(
            vulnerabilities=vulnerabilities,
            audit_status=audit_status,
            audit_score=audit_score,
            code_quality=score_source(source_code, CODE_QUALITY_PATTERNS),
            gas_optimization=score_source(source_code, GAS_PATTERNS),
        )

    async def _fetch_contract_source(self, address: str) -> Dict[str, Any]:
        params = {
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
            "apikey": self.api_key,
        }
        payload = await self._get_json(ETHERSCAN_API, params=params)

        # Etherscan reports errors with status "0" and a string result
        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, list) or not result or not isinstance(result[0], dict):
            message = payload.get("message", "no result") if isinstance(payload, dict) else "bad payload"
            raise CollectorError(self.category.value, f"Etherscan: {message}")

        return result[0]

    async def _analyze_contract_security(self, address: str, source_code: str) -> List[Vulnerability]:
        """Static analyzer findings (Slither/Mythril run out of process)"""
        logger.debug(f"No analyzer findings available for {address}")
        return []

    async def _determine_audit_status(self, address: str) -> Tuple[str, float]:
        """Audit registry lookup"""
        return AuditStatus.UNAUDITED.value, 0.0
