"""
Market Data Collector - CoinGecko market statistics for BlitzProof scoring
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger

from utils.constants import COINGECKO_API, COINGECKO_PRO_API, Category, UNRANKED
from utils.errors import CollectorError
from utils.helpers import safe_float, safe_int
from .base import BaseCollector


@dataclass
class MarketData:
    """Market statistics in USD"""
    market_cap: float = 0.0
    volume_24h: float = 0.0
    price_change_24h: float = 0.0
    liquidity: float = 0.0
    market_cap_rank: int = UNRANKED
    price_volatility: float = 0.0

    @classmethod
    def default(cls) -> "MarketData":
        return cls()


class MarketDataCollector(BaseCollector[MarketData]):
    """Pulls market cap, volume, liquidity and rank from CoinGecko"""

    category = Category.MARKET

    def __init__(self, session, config: Optional[Dict[str, Any]] = None):
        super().__init__(session, config)
        self.api_key = self.config.get("coingecko_api_key") or ""
        # Pro keys are only accepted on the pro host
        self.base_url = COINGECKO_PRO_API if self.api_key else COINGECKO_API

    def default(self) -> MarketData:
        return MarketData.default()

    async def collect(self, token_id: str, contract_address: Optional[str] = None) -> MarketData:
        headers = {"x-cg-pro-api-key": self.api_key} if self.api_key else None
        params = {
            "localization": "false",
            "tickers": "false",
            "community_data": "false",
            "developer_data": "false",
        }
        data = await self._get_json(f"{self.base_url}/coins/{token_id}", params=params, headers=headers)
        return self._parse_coin(data)

    def _parse_coin(self, data: Any) -> MarketData:
        if not isinstance(data, dict):
            raise CollectorError(self.category.value, "unexpected CoinGecko payload")

        market = data.get("market_data") or {}
        price_change = safe_float(market.get("price_change_percentage_24h"))

        result = MarketData(
            market_cap=safe_float((market.get("market_cap") or {}).get("usd")),
            volume_24h=safe_float((market.get("total_volume") or {}).get("usd")),
            price_change_24h=price_change,
            liquidity=safe_float((market.get("total_liquidity") or {}).get("usd")),
            market_cap_rank=safe_int(data.get("market_cap_rank")) or UNRANKED,
            # 24h swing as a fraction; 0.05 means a 5% move
            price_volatility=abs(price_change) / 100,
        )
        logger.debug(f"Market data for {data.get('id')}: rank={result.market_cap_rank}")
        return result
