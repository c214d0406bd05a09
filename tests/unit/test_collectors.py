# tests/unit/test_collectors.py
"""
Unit tests for the six category collectors and DataCollectionService
"""
import asyncio

import aiohttp
import pytest
from unittest.mock import AsyncMock, patch

from data.collectors import (
    CollectedData,
    CommunityData,
    CommunityDataCollector,
    DataCollectionService,
    FundamentalData,
    FundamentalDataCollector,
    GovernanceData,
    GovernanceDataCollector,
    MarketData,
    MarketDataCollector,
    OperationalData,
    OperationalDataCollector,
    SecurityData,
    SecurityDataCollector,
)
from data.collectors.governance_data import calculate_voting_participation
from data.collectors.security_data import CODE_QUALITY_PATTERNS, GAS_PATTERNS, score_source
from utils.constants import COINGECKO_PRO_API, ETHERSCAN_API, UNRANKED, Category
from utils.errors import CollectorError


@pytest.mark.unit
class TestCollectorContract:
    """try_fetch/fetch behaviour shared by every collector"""

    @pytest.mark.asyncio
    async def test_http_error_yields_default(self, test_config, helpers):
        session = helpers.mock_session(helpers.mock_response(status=429))
        collector = MarketDataCollector(session, test_config)

        result = await collector.try_fetch("uniswap")
        assert not result.ok
        assert isinstance(result.error, CollectorError)
        assert result.error.category == Category.MARKET.value
        assert "429" in str(result.error)

        assert await collector.fetch("uniswap") == MarketData.default()

    @pytest.mark.asyncio
    async def test_network_exception_yields_default(self, test_config, helpers):
        session = helpers.mock_session(side_effect=aiohttp.ClientConnectionError("refused"))
        collector = GovernanceDataCollector(session, test_config)

        result = await collector.try_fetch("uniswap")
        assert result.error.category == Category.GOVERNANCE.value
        assert "ClientConnectionError" in str(result.error)
        assert await collector.fetch("uniswap") == GovernanceData.default()

    @pytest.mark.asyncio
    async def test_timeout_yields_default(self, helpers):
        collector = MarketDataCollector(helpers.mock_session(), {"collector_timeout": 0.01})

        async def slow_collect(token_id, contract_address=None):
            await asyncio.sleep(1)

        with patch.object(collector, "collect", side_effect=slow_collect):
            result = await collector.try_fetch("uniswap")

        assert "timed out" in str(result.error)
        assert result.unwrap_or(MarketData.default()) == MarketData.default()

    @pytest.mark.asyncio
    async def test_missing_session_yields_default(self, test_config):
        collector = SecurityDataCollector(None, test_config)
        assert await collector.fetch("0xabc", "0xabc") == SecurityData.default()

    @pytest.mark.asyncio
    async def test_successful_result_unwraps(self, test_config, helpers, mock_data):
        session = helpers.mock_session(helpers.mock_response(payload=mock_data.coingecko_coin()))
        collector = MarketDataCollector(session, test_config)

        result = await collector.try_fetch("uniswap")
        assert result.ok
        assert result.unwrap_or(None) is result.value


@pytest.mark.unit
class TestMarketDataCollector:

    @pytest.mark.asyncio
    async def test_parses_coingecko_payload(self, test_config, helpers, mock_data):
        payload = mock_data.coingecko_coin(
            market_cap=1_000_000, volume=100_000, liquidity=50_000,
            price_change_pct=-5.0, rank=45
        )
        session = helpers.mock_session(helpers.mock_response(payload=payload))

        data = await MarketDataCollector(session, test_config).fetch("uniswap")

        assert data.market_cap == 1_000_000
        assert data.volume_24h == 100_000
        assert data.liquidity == 50_000
        assert data.price_change_24h == -5.0
        assert data.market_cap_rank == 45
        assert data.price_volatility == pytest.approx(0.05)

    @pytest.mark.asyncio
    async def test_missing_rank_is_unranked(self, test_config, helpers, mock_data):
        payload = mock_data.coingecko_coin(rank=None)
        session = helpers.mock_session(helpers.mock_response(payload=payload))

        data = await MarketDataCollector(session, test_config).fetch("newcoin")
        assert data.market_cap_rank == UNRANKED

    @pytest.mark.asyncio
    async def test_pro_key_uses_pro_host(self, test_config, helpers, mock_data):
        test_config["coingecko_api_key"] = "cg-key"
        session = helpers.mock_session(helpers.mock_response(payload=mock_data.coingecko_coin()))

        await MarketDataCollector(session, test_config).fetch("uniswap")

        args, kwargs = session.get.call_args
        assert args[0] == f"{COINGECKO_PRO_API}/coins/uniswap"
        assert kwargs["headers"] == {"x-cg-pro-api-key": "cg-key"}

    @pytest.mark.asyncio
    async def test_non_object_payload_yields_default(self, test_config, helpers):
        session = helpers.mock_session(helpers.mock_response(payload=["unexpected"]))
        assert await MarketDataCollector(session, test_config).fetch("uniswap") == MarketData.default()


@pytest.mark.unit
class TestSecurityDataCollector:

    def test_score_source_patterns(self):
        source = "import SafeMath; function kill() { selfdestruct(owner); }"
        assert score_source(source, CODE_QUALITY_PATTERNS) == 90

    def test_score_source_clamps(self):
        assert score_source("SafeMath ReentrancyGuard Ownable", CODE_QUALITY_PATTERNS) == 100
        assert score_source("selfdestruct delegatecall assembly", CODE_QUALITY_PATTERNS) == 55

    def test_empty_source_scores_zero(self):
        assert score_source("", GAS_PATTERNS) == 0

    @pytest.mark.asyncio
    async def test_collects_from_etherscan(self, test_config, helpers, mock_data):
        payload = mock_data.etherscan_source("contract T is Ownable { unchecked { } }")
        session = helpers.mock_session(helpers.mock_response(payload=payload))

        data = await SecurityDataCollector(session, test_config).fetch("0xabc", "0xabc")

        args, kwargs = session.get.call_args
        assert args[0] == ETHERSCAN_API
        assert kwargs["params"]["address"] == "0xabc"
        assert kwargs["params"]["apikey"] == "test-key"

        assert data.code_quality == 100
        assert data.gas_optimization == 100
        assert data.vulnerabilities == []
        assert data.audit_status == "unaudited"
        assert data.audit_score == 0

    @pytest.mark.asyncio
    async def test_etherscan_error_yields_default(self, test_config, helpers):
        payload = {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}
        session = helpers.mock_session(helpers.mock_response(payload=payload))

        collector = SecurityDataCollector(session, test_config)
        result = await collector.try_fetch("0xabc", "0xabc")

        assert "NOTOK" in str(result.error)
        assert await collector.fetch("0xabc", "0xabc") == SecurityData.default()


@pytest.mark.unit
class TestGovernanceDataCollector:

    def test_voting_participation(self):
        assert calculate_voting_participation([]) == 0
        assert calculate_voting_participation([{"votes": 2}, {"votes": 4}]) == 30
        assert calculate_voting_participation([{"votes": 5}, {"votes": 15}]) == 100

    @pytest.mark.asyncio
    async def test_collects_snapshot_proposals(self, test_config, helpers, mock_data):
        session = helpers.mock_session(
            helpers.mock_response(payload=mock_data.snapshot_proposals([2, 4, 6]))
        )

        data = await GovernanceDataCollector(session, test_config).fetch("uniswap")

        payload = session.post.call_args.kwargs["json"]
        assert payload["variables"] == {"space": "uniswap"}
        assert data.voting_participation == 40
        assert data.power_distribution == 50
        assert data.proposal_count == 3
        assert data.has_multi_sig is False
        assert data.treasury_value == 0

    @pytest.mark.asyncio
    async def test_graphql_errors_yield_default(self, test_config, helpers):
        payload = {"errors": [{"message": "space not found"}]}
        session = helpers.mock_session(helpers.mock_response(payload=payload))

        data = await GovernanceDataCollector(session, test_config).fetch("nope")
        assert data == GovernanceData.default()


@pytest.mark.unit
class TestCommunityDataCollector:

    @pytest.mark.asyncio
    async def test_collects_social_counts(self, test_config, helpers, mock_data):
        payload = mock_data.coingecko_coin(
            twitter_followers=120_000, telegram_members=30_000, contributors=14
        )
        session = helpers.mock_session(helpers.mock_response(payload=payload))

        data = await CommunityDataCollector(session, test_config).fetch("uniswap")

        assert data.twitter_followers == 120_000
        assert data.telegram_members == 30_000
        assert data.discord_members == 0
        assert data.github_contributors == 14
        assert data.documentation_quality == 50


@pytest.mark.unit
class TestBaselineCollectors:

    @pytest.mark.asyncio
    async def test_fundamental_baseline(self, test_config):
        data = await FundamentalDataCollector(None, test_config).fetch("uniswap")
        assert data == FundamentalData(
            tokenomics_health=50, team_credibility=50, partnership_count=0,
            utility_score=50, roadmap_progress=50, vesting_schedule=[]
        )

    @pytest.mark.asyncio
    async def test_operational_baseline(self, test_config):
        data = await OperationalDataCollector(None, test_config).fetch("uniswap")
        assert data == OperationalData(
            uptime=99.9, transaction_speed=15.0, network_security=75.0,
            upgrade_capability=50.0, emergency_procedures=False
        )


@pytest.mark.unit
class TestDataCollectionService:

    @pytest.mark.asyncio
    async def test_collect_all_never_raises(self, test_config):
        service = DataCollectionService(test_config)  # no session: network collectors fail

        data = await service.collect_all("uniswap")

        assert isinstance(data, CollectedData)
        assert data.market == MarketData.default()
        assert data.security == SecurityData.default()
        assert data.governance == GovernanceData.default()
        assert data.fundamental.tokenomics_health == 50
        assert data.operational.uptime == 99.9

    @pytest.mark.asyncio
    async def test_contract_address_routed_to_security(self, test_config):
        service = DataCollectionService(test_config)
        service.fetch_security_data = AsyncMock(return_value=SecurityData.default())

        await service.collect_all("uniswap", "0xdead")
        service.fetch_security_data.assert_awaited_once_with("0xdead")

        await service.collect_all("uniswap")
        service.fetch_security_data.assert_awaited_with("uniswap")

    @pytest.mark.asyncio
    async def test_collect_all_runs_fetches_concurrently(self, test_config):
        service = DataCollectionService(test_config)
        active = 0
        peak = 0

        def tracked(value):
            async def fetch(*args):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.05)
                active -= 1
                return value
            return fetch

        service.fetch_market_data = tracked(MarketData.default())
        service.fetch_security_data = tracked(SecurityData.default())
        service.fetch_governance_data = tracked(GovernanceData.default())
        service.fetch_fundamental_data = tracked(FundamentalData.default())
        service.fetch_community_data = tracked(CommunityData.default())
        service.fetch_operational_data = tracked(OperationalData.default())

        data = await service.collect_all("uniswap")

        assert peak == 6
        assert data.market == MarketData.default()


    @pytest.mark.asyncio
    async def test_initialize_and_cleanup_own_session(self, test_config):
        service = DataCollectionService(test_config)
        await service.initialize()
        try:
            assert isinstance(service.session, aiohttp.ClientSession)
            assert service.market.session is service.session
        finally:
            await service.cleanup()
        assert service.session is None
