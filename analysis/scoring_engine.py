# analysis/scoring_engine.py

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, Optional

from config.scoring import DEFAULT_SCORING_CONFIG, ScoringConfig
from data.collectors import (
    CollectedData,
    CommunityData,
    DataCollectionService,
    FundamentalData,
    GovernanceData,
    MarketData,
    OperationalData,
    SecurityData,
    Vulnerability,
)
from utils.constants import AuditStatus, Severity
from utils.helpers import measure_time, round_half_up

logger = logging.getLogger(__name__)


@dataclass
class CategoryScores:
    """Per-category sub-scores, each 0-100"""
    code_security: int = 0
    market: int = 0
    governance: int = 0
    fundamental: int = 0
    community: int = 0
    operational: int = 0

    # snake_case attribute -> wire key
    KEYS = {
        'code_security': 'codeSecurity',
        'market': 'market',
        'governance': 'governance',
        'fundamental': 'fundamental',
        'community': 'community',
        'operational': 'operational',
    }

    def to_dict(self) -> Dict[str, int]:
        return {wire: getattr(self, attr) for attr, wire in self.KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CategoryScores":
        return cls(**{attr: int(data[wire]) for attr, wire in cls.KEYS.items()})


@dataclass
class VulnerabilitySummary:
    """Finding counts per summary bucket"""
    verified: int = 0
    informational: int = 0
    warnings: int = 0
    critical: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VulnerabilitySummary":
        return cls(**{f.name: int(data[f.name]) for f in fields(cls)})


@dataclass
class ScoreResult:
    """Output of one engine run"""
    overall_score: int
    rating: str
    categories: CategoryScores
    summary: VulnerabilitySummary


# Severity -> summary bucket. Low findings land in "verified".
SUMMARY_BUCKETS = {
    Severity.CRITICAL.value: 'critical',
    Severity.HIGH.value: 'warnings',
    Severity.MEDIUM.value: 'informational',
    Severity.LOW.value: 'verified',
}


class BlitzProofScoringEngine:
    """
    Weighted six-category token rating.

    All calculate_* methods are pure; only calculate_blitzproof_score performs
    I/O, through the collection service.
    """

    def __init__(
        self,
        collection_service: Optional[DataCollectionService] = None,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG
    ):
        self.collection_service = collection_service
        self.config = config

    @measure_time
    async def calculate_blitzproof_score(
        self,
        token_id: str,
        contract_address: Optional[str] = None
    ) -> ScoreResult:
        """Collect all six categories concurrently and score them"""
        if self.collection_service is None:
            raise RuntimeError("Scoring engine has no data collection service")

        logger.info(f"Calculating BlitzProof score for {token_id}")
        collected = await self.collection_service.collect_all(token_id, contract_address)
        result = self.compute_score(collected)
        logger.info(f"Scored {token_id}: {result.overall_score} ({result.rating})")
        return result

    def compute_score(self, data: CollectedData) -> ScoreResult:
        """Pure transformation from raw data to score, rating and summary"""
        categories = CategoryScores(
            code_security=self.calculate_code_security_score(data.security),
            market=self.calculate_market_score(data.market),
            governance=self.calculate_governance_score(data.governance),
            fundamental=self.calculate_fundamental_score(data.fundamental),
            community=self.calculate_community_score(data.community),
            operational=self.calculate_operational_score(data.operational),
        )
        overall = self.calculate_overall_score(categories)

        return ScoreResult(
            overall_score=overall,
            rating=self.determine_rating(overall),
            categories=categories,
            summary=self.calculate_vulnerability_summary(data.security.vulnerabilities),
        )

    # ------------------------------------------------------------------
    # Code security (30%)
    # ------------------------------------------------------------------

    def calculate_code_security_score(self, data: SecurityData) -> int:
        score = (
            self.calculate_audit_score(data.audit_status, data.audit_score) * 0.4
            + self.calculate_vulnerability_score(data.vulnerabilities) * 0.35
            + data.code_quality * 0.15
            + data.gas_optimization * 0.10
        )
        return round_half_up(score)

    def calculate_audit_score(self, audit_status: str, audit_score: float) -> float:
        if audit_status == AuditStatus.AUDITED.value:
            return max(80, audit_score)
        if audit_status == AuditStatus.PARTIALLY_AUDITED.value:
            return max(60, audit_score)
        if audit_status == AuditStatus.UNAUDITED.value:
            return min(40, audit_score)
        return 0

    def calculate_vulnerability_score(self, vulnerabilities: Iterable[Vulnerability]) -> float:
        score = 100.0
        for vuln in vulnerabilities:
            weight = self.config.severity_weights.get(vuln.severity, 0)
            score -= weight * (vuln.confidence / 100)
        return max(0.0, score)

    # ------------------------------------------------------------------
    # Market (20%)
    # ------------------------------------------------------------------

    def calculate_market_score(self, data: MarketData) -> int:
        score = (
            self.calculate_liquidity_score(data.liquidity, data.market_cap) * 0.35
            + self.calculate_volume_score(data.volume_24h, data.market_cap) * 0.25
            + self.calculate_price_stability_score(data.price_volatility) * 0.20
            + self.calculate_market_cap_rank_score(data.market_cap_rank) * 0.20
        )
        return round_half_up(score)

    def calculate_liquidity_score(self, liquidity: float, market_cap: float) -> float:
        if market_cap <= 0:
            return 0
        return min(100, (liquidity / market_cap) * 1000)

    def calculate_volume_score(self, volume_24h: float, market_cap: float) -> float:
        if market_cap <= 0:
            return 0
        return min(100, (volume_24h / market_cap) * 100)

    def calculate_price_stability_score(self, volatility: float) -> float:
        return max(0, 100 - volatility * 100)

    def calculate_market_cap_rank_score(self, rank: int) -> int:
        if rank <= 10:
            return 100
        if rank <= 50:
            return 90
        if rank <= 100:
            return 80
        if rank <= 500:
            return 60
        if rank <= 1000:
            return 40
        return 20

    # ------------------------------------------------------------------
    # Governance (15%)
    # ------------------------------------------------------------------

    def calculate_governance_score(self, data: GovernanceData) -> int:
        score = (
            data.voting_participation * 0.30
            + data.power_distribution * 0.25
            + self.calculate_security_measures_score(data) * 0.25
            + self.calculate_treasury_score(data.treasury_value) * 0.20
        )
        return round_half_up(score)

    def calculate_security_measures_score(self, data: GovernanceData) -> int:
        score = 0
        if data.has_multi_sig:
            score += 50
        if data.has_timelock:
            score += 50
        return score

    def calculate_treasury_score(self, treasury_value: float) -> int:
        if treasury_value > 10_000_000:
            return 100
        if treasury_value > 1_000_000:
            return 80
        if treasury_value > 100_000:
            return 60
        if treasury_value > 10_000:
            return 40
        return 20

    # ------------------------------------------------------------------
    # Fundamental (15%)
    # ------------------------------------------------------------------

    def calculate_fundamental_score(self, data: FundamentalData) -> int:
        score = (
            data.tokenomics_health * 0.30
            + data.team_credibility * 0.25
            + self.calculate_partnership_score(data.partnership_count) * 0.20
            + data.utility_score * 0.15
            + data.roadmap_progress * 0.10
        )
        return round_half_up(score)

    def calculate_partnership_score(self, partnership_count: int) -> int:
        if partnership_count >= 10:
            return 100
        if partnership_count >= 5:
            return 80
        if partnership_count >= 3:
            return 60
        if partnership_count >= 1:
            return 40
        return 20

    # ------------------------------------------------------------------
    # Community (10%)
    # ------------------------------------------------------------------

    def calculate_community_score(self, data: CommunityData) -> int:
        score = (
            data.social_engagement * 0.30
            + self.calculate_community_size_score(data) * 0.25
            + self.calculate_developer_score(data.github_contributors) * 0.25
            + data.documentation_quality * 0.20
        )
        return round_half_up(score)

    def calculate_community_size_score(self, data: CommunityData) -> int:
        total_members = data.twitter_followers + data.telegram_members + data.discord_members

        if total_members > 1_000_000:
            return 100
        if total_members > 100_000:
            return 80
        if total_members > 10_000:
            return 60
        if total_members > 1_000:
            return 40
        return 20

    def calculate_developer_score(self, contributors: int) -> int:
        if contributors >= 50:
            return 100
        if contributors >= 20:
            return 80
        if contributors >= 10:
            return 60
        if contributors >= 5:
            return 40
        if contributors >= 1:
            return 20
        return 0

    # ------------------------------------------------------------------
    # Operational (10%)
    # ------------------------------------------------------------------

    def calculate_operational_score(self, data: OperationalData) -> int:
        score = (
            data.uptime * 0.30
            + self.calculate_transaction_score(data.transaction_speed) * 0.25
            + data.network_security * 0.25
            + self.calculate_infrastructure_score(data) * 0.20
        )
        return round_half_up(score)

    def calculate_transaction_score(self, avg_seconds: float) -> int:
        if avg_seconds <= 5:
            return 100
        if avg_seconds <= 15:
            return 80
        if avg_seconds <= 30:
            return 60
        if avg_seconds <= 60:
            return 40
        return 20

    def calculate_infrastructure_score(self, data: OperationalData) -> float:
        score = data.upgrade_capability
        if data.emergency_procedures:
            score += 20
        return min(100, score)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def calculate_overall_score(self, categories: CategoryScores) -> int:
        weights = self.config.weights
        return round_half_up(
            categories.code_security * weights.code_security
            + categories.market * weights.market
            + categories.governance * weights.governance
            + categories.fundamental * weights.fundamental
            + categories.community * weights.community
            + categories.operational * weights.operational
        )

    def determine_rating(self, score: int) -> str:
        for band in self.config.rating_bands:
            if score >= band.min_score:
                return band.rating
        return self.config.floor_rating

    def calculate_vulnerability_summary(self, vulnerabilities: Iterable[Vulnerability]) -> VulnerabilitySummary:
        summary = VulnerabilitySummary()
        for vuln in vulnerabilities:
            bucket = SUMMARY_BUCKETS.get(vuln.severity)
            if bucket:
                setattr(summary, bucket, getattr(summary, bucket) + 1)
        return summary
