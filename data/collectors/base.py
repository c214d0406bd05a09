"""
Collector base - one contract shared by all six category collectors

Every collector has a Result-returning core (try_fetch) and a boundary
adapter (fetch) that substitutes the category default on failure, so the
scoring engine never sees missing data.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

import aiohttp
from loguru import logger

from utils.constants import Category
from utils.errors import CollectorError

T = TypeVar("T")


@dataclass
class CollectorResult(Generic[T]):
    """Outcome of a single collection attempt"""
    category: Category
    value: Optional[T] = None
    error: Optional[CollectorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default


async def with_default(
    attempt: Callable[[], Awaitable[CollectorResult[T]]],
    default_factory: Callable[[], T],
) -> T:
    """Run a Result-returning attempt and collapse failure into the default"""
    result = await attempt()
    if not result.ok:
        logger.warning(f"Using default {result.category.value} data: {result.error}")
        return default_factory()
    return result.value


class BaseCollector(ABC, Generic[T]):
    """
    Fetches one category of raw data for a token.

    Subclasses implement collect(); callers use fetch(), which never raises.
    """

    category: Category

    def __init__(self, session: Optional[aiohttp.ClientSession], config: Optional[Dict[str, Any]] = None):
        self.session = session
        self.config = config or {}
        self.timeout = float(self.config.get("collector_timeout", 10))

    @abstractmethod
    def default(self) -> T:
        """Neutral data used whenever collection fails"""

    @abstractmethod
    async def collect(self, token_id: str, contract_address: Optional[str] = None) -> T:
        """Gather raw data; may raise"""

    async def try_fetch(
        self,
        token_id: str,
        contract_address: Optional[str] = None
    ) -> CollectorResult[T]:
        """Single bounded attempt, every failure captured as a CollectorError"""
        try:
            value = await asyncio.wait_for(
                self.collect(token_id, contract_address),
                timeout=self.timeout
            )
            return CollectorResult(self.category, value=value)
        except asyncio.TimeoutError:
            error = CollectorError(
                self.category.value, f"timed out after {self.timeout:.1f}s for {token_id}"
            )
        except CollectorError as e:
            error = e
        except Exception as e:
            error = CollectorError(self.category.value, f"{type(e).__name__}: {e}")

        return CollectorResult(self.category, error=error)

    async def fetch(self, token_id: str, contract_address: Optional[str] = None) -> T:
        """Collect data for token_id, falling back to default() on any failure"""
        return await with_default(
            lambda: self.try_fetch(token_id, contract_address),
            self.default
        )

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """GET a JSON document, raising CollectorError on non-200"""
        if self.session is None:
            raise CollectorError(self.category.value, "no HTTP session")

        async with self.session.get(url, params=params, headers=headers) as response:
            if response.status != 200:
                raise CollectorError(
                    self.category.value, f"HTTP {response.status} from {url}"
                )
            return await response.json()

    async def _post_json(self, url: str, payload: Dict[str, Any]) -> Any:
        """POST a JSON body and decode the JSON response"""
        if self.session is None:
            raise CollectorError(self.category.value, "no HTTP session")

        async with self.session.post(url, json=payload) as response:
            if response.status != 200:
                raise CollectorError(
                    self.category.value, f"HTTP {response.status} from {url}"
                )
            return await response.json()
