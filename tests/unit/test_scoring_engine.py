# tests/unit/test_scoring_engine.py
"""
Unit tests for BlitzProofScoringEngine
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from analysis.scoring_engine import BlitzProofScoringEngine, CategoryScores
from config.scoring import ScoringConfig, ScoringWeights
from data.collectors import (
    CollectedData,
    CommunityData,
    DataCollectionService,
    GovernanceData,
    MarketData,
    OperationalData,
    SecurityData,
    Vulnerability,
)


@pytest.mark.unit
class TestCodeSecurityScore:
    """Audit, vulnerability and code heuristics"""

    def test_unaudited_with_high_finding(self, scoring_engine):
        data = SecurityData(
            audit_status="unaudited",
            audit_score=20,
            code_quality=60,
            gas_optimization=70,
            vulnerabilities=[Vulnerability(type="reentrancy", severity="high", confidence=100)],
        )
        assert scoring_engine.calculate_code_security_score(data) == 54

    def test_no_vulnerabilities_scores_full(self, scoring_engine):
        assert scoring_engine.calculate_vulnerability_score([]) == 100

    def test_single_critical_at_full_confidence(self, scoring_engine):
        vulns = [Vulnerability(type="overflow", severity="critical", confidence=100)]
        assert scoring_engine.calculate_vulnerability_score(vulns) == 75

    def test_penalty_scales_with_confidence(self, scoring_engine):
        vulns = [Vulnerability(type="overflow", severity="critical", confidence=50)]
        assert scoring_engine.calculate_vulnerability_score(vulns) == pytest.approx(87.5)

    def test_vulnerability_score_floors_at_zero(self, scoring_engine):
        vulns = [Vulnerability(type="x", severity="critical") for _ in range(10)]
        assert scoring_engine.calculate_vulnerability_score(vulns) == 0

    def test_unknown_severity_has_no_penalty(self, scoring_engine):
        vulns = [Vulnerability(type="x", severity="cosmetic")]
        assert scoring_engine.calculate_vulnerability_score(vulns) == 100

    @pytest.mark.parametrize("status,score,expected", [
        ("audited", 50, 80),
        ("audited", 95, 95),
        ("partially_audited", 10, 60),
        ("partially_audited", 70, 70),
        ("unaudited", 90, 40),
        ("unaudited", 20, 20),
        ("revoked", 90, 0),
    ])
    def test_audit_score(self, scoring_engine, status, score, expected):
        assert scoring_engine.calculate_audit_score(status, score) == expected


@pytest.mark.unit
class TestMarketScore:
    """Liquidity, volume, stability and rank"""

    def test_market_scenario(self, scoring_engine):
        data = MarketData(
            market_cap=1_000_000,
            volume_24h=100_000,
            liquidity=50_000,
            price_change_24h=5,
            market_cap_rank=45,
            price_volatility=0.05,
        )
        assert scoring_engine.calculate_market_score(data) == 57

    def test_zero_market_cap_zeroes_ratios(self, scoring_engine):
        assert scoring_engine.calculate_liquidity_score(1_000, 0) == 0
        assert scoring_engine.calculate_volume_score(1_000, 0) == 0

    def test_ratios_capped_at_100(self, scoring_engine):
        assert scoring_engine.calculate_liquidity_score(1_000_000, 1_000_000) == 100
        assert scoring_engine.calculate_volume_score(5_000_000, 1_000_000) == 100

    def test_extreme_volatility_floors_at_zero(self, scoring_engine):
        assert scoring_engine.calculate_price_stability_score(1.5) == 0

    @pytest.mark.parametrize("rank,expected", [
        (1, 100), (10, 100), (11, 90), (50, 90), (100, 80),
        (500, 60), (1000, 40), (1001, 20), (999999, 20),
    ])
    def test_rank_bands(self, scoring_engine, rank, expected):
        assert scoring_engine.calculate_market_cap_rank_score(rank) == expected

    def test_default_market_data(self, scoring_engine):
        # unranked, no cap: only price stability contributes
        assert scoring_engine.calculate_market_score(MarketData.default()) == 24


@pytest.mark.unit
class TestOtherCategories:

    def test_governance_security_measures(self, scoring_engine):
        data = GovernanceData(has_multi_sig=True, has_timelock=True)
        assert scoring_engine.calculate_security_measures_score(data) == 100
        assert scoring_engine.calculate_security_measures_score(GovernanceData(has_timelock=True)) == 50

    @pytest.mark.parametrize("value,expected", [
        (20_000_000, 100), (10_000_000, 80), (2_000_000, 80),
        (500_000, 60), (50_000, 40), (10_000, 20), (0, 20),
    ])
    def test_treasury_bands(self, scoring_engine, value, expected):
        assert scoring_engine.calculate_treasury_score(value) == expected

    def test_governance_score(self, scoring_engine):
        data = GovernanceData(voting_participation=30, power_distribution=50)
        # 9 + 12.5 + 0 + 4
        assert scoring_engine.calculate_governance_score(data) == 26

    @pytest.mark.parametrize("count,expected", [(0, 20), (1, 40), (3, 60), (5, 80), (10, 100)])
    def test_partnership_bands(self, scoring_engine, count, expected):
        assert scoring_engine.calculate_partnership_score(count) == expected

    def test_community_size_sums_platforms(self, scoring_engine):
        data = CommunityData(twitter_followers=600_000, telegram_members=300_000, discord_members=200_000)
        assert scoring_engine.calculate_community_size_score(data) == 100

    @pytest.mark.parametrize("contributors,expected", [
        (0, 0), (1, 20), (5, 40), (10, 60), (20, 80), (50, 100),
    ])
    def test_developer_bands(self, scoring_engine, contributors, expected):
        assert scoring_engine.calculate_developer_score(contributors) == expected

    @pytest.mark.parametrize("seconds,expected", [
        (3, 100), (5, 100), (15, 80), (30, 60), (60, 40), (61, 20),
    ])
    def test_transaction_speed_bands(self, scoring_engine, seconds, expected):
        assert scoring_engine.calculate_transaction_score(seconds) == expected

    def test_infrastructure_emergency_bonus_capped(self, scoring_engine):
        assert scoring_engine.calculate_infrastructure_score(
            OperationalData(upgrade_capability=90, emergency_procedures=True)
        ) == 100
        assert scoring_engine.calculate_infrastructure_score(
            OperationalData(upgrade_capability=50, emergency_procedures=True)
        ) == 70

    def test_operational_baseline(self, scoring_engine):
        data = OperationalData(
            uptime=99.9, transaction_speed=15, network_security=75,
            upgrade_capability=50, emergency_procedures=False
        )
        # 29.97 + 20 + 18.75 + 10
        assert scoring_engine.calculate_operational_score(data) == 79


@pytest.mark.unit
class TestCompositionAndRating:

    @pytest.mark.parametrize("score,rating", [
        (100, "AAA"), (90, "AAA"), (89, "AA"), (80, "AA"), (70, "A"), (60, "BBB"),
        (50, "BB"), (40, "B"), (30, "CCC"), (20, "CC"), (10, "C"), (9, "D"), (0, "D"),
    ])
    def test_rating_bands(self, scoring_engine, score, rating):
        assert scoring_engine.determine_rating(score) == rating

    def test_overall_score_weighting(self, scoring_engine):
        categories = CategoryScores(
            code_security=54, market=57, governance=25,
            fundamental=44, community=20, operational=75
        )
        # 16.2 + 11.4 + 3.75 + 6.6 + 2 + 7.5 = 47.45
        assert scoring_engine.calculate_overall_score(categories) == 47

    def test_half_rounds_up(self, scoring_engine):
        # 0.30 * 55 = 16.5
        categories = CategoryScores(code_security=55)
        assert scoring_engine.calculate_overall_score(categories) == 17

    def test_all_perfect_scores_100(self, scoring_engine):
        categories = CategoryScores(100, 100, 100, 100, 100, 100)
        assert scoring_engine.calculate_overall_score(categories) == 100

    def test_vulnerability_summary_remap(self, scoring_engine):
        vulns = [
            Vulnerability(type="a", severity="critical"),
            Vulnerability(type="b", severity="high"),
            Vulnerability(type="c", severity="high"),
            Vulnerability(type="d", severity="medium"),
            Vulnerability(type="e", severity="low"),
            Vulnerability(type="f", severity="unknown"),
        ]
        summary = scoring_engine.calculate_vulnerability_summary(vulns)
        assert summary.to_dict() == {
            "verified": 1, "informational": 1, "warnings": 2, "critical": 1
        }

    def test_compute_score_is_deterministic(self, scoring_engine, collected_data):
        first = scoring_engine.compute_score(collected_data)
        second = scoring_engine.compute_score(collected_data)
        assert first == second
        assert 0 <= first.overall_score <= 100
        assert first.rating == scoring_engine.determine_rating(first.overall_score)

    def test_defaults_produce_a_valid_score(self, scoring_engine):
        result = scoring_engine.compute_score(CollectedData.defaults())
        assert 0 <= result.overall_score <= 100
        assert result.summary.to_dict() == {
            "verified": 0, "informational": 0, "warnings": 0, "critical": 0
        }

    def test_custom_weights(self, collected_data):
        weights = ScoringWeights(
            code_security=1.0, market=0.0, governance=0.0,
            fundamental=0.0, community=0.0, operational=0.0
        )
        engine = BlitzProofScoringEngine(config=ScoringConfig(weights=weights))
        result = engine.compute_score(collected_data)
        assert result.overall_score == result.categories.code_security


@pytest.mark.unit
class TestCalculateBlitzProofScore:

    @pytest.mark.asyncio
    async def test_collects_then_scores(self, collected_data):
        service = MagicMock(spec=DataCollectionService)
        service.collect_all = AsyncMock(return_value=collected_data)
        engine = BlitzProofScoringEngine(service)

        result = await engine.calculate_blitzproof_score("uniswap", "0xabc")

        service.collect_all.assert_awaited_once_with("uniswap", "0xabc")
        assert result == engine.compute_score(collected_data)

    @pytest.mark.asyncio
    async def test_requires_collection_service(self, scoring_engine):
        with pytest.raises(RuntimeError):
            await scoring_engine.calculate_blitzproof_score("uniswap")
