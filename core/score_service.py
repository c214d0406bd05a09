"""
BlitzProof Score Service - cache-aside reads, computation and admin writes

Read path for a score: cache, then store, then a fresh computation that is
upserted and cached. Admin writes go straight to the store and invalidate the
cached entry afterwards.
"""

import asyncio
import logging
import math
from dataclasses import fields
from typing import Any, Dict, List, Mapping, Optional, Tuple

from analysis.scoring_engine import (
    BlitzProofScoringEngine,
    CategoryScores,
    ScoreResult,
    VulnerabilitySummary,
)
from data.storage.cache import CacheManager
from data.storage.database import DatabaseManager
from data.storage.models import BlitzProofScore, TokenInfo, TokenInfoRecord, TokenWithScore
from monitoring.logger import StructuredLogger
from utils.constants import RATINGS, SYSTEM_ACTOR
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

SCORE_REQUIRED_FIELDS = ('overallScore', 'rating', 'categories', 'summary')
INFO_REQUIRED_FIELDS = ('name', 'symbol')

CATEGORY_KEYS = tuple(CategoryScores.KEYS.values())
SUMMARY_KEYS = tuple(f.name for f in fields(VulnerabilitySummary))


def _missing(data: Mapping[str, Any], keys) -> List[str]:
    """Keys that are absent or null (0 and '' count as present)"""
    return [key for key in keys if data.get(key) is None]


def _as_int(value: Any, name: str, lower: int = 0, upper: Optional[int] = None) -> int:
    """Whole JSON number within [lower, upper]; strings, bools and fractions are rejected"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number")
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError(f"{name} must be a whole number")
        value = int(value)
    if value < lower or (upper is not None and value > upper):
        bound = f"{lower}-{upper}" if upper is not None else f">= {lower}"
        raise ValidationError(f"{name} must be in range {bound}")
    return value


def _as_text(value: Any, name: str, max_length: Optional[int] = None) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{name} must be at most {max_length} characters")
    return value


def _column_length(column: str) -> Optional[int]:
    """Declared VARCHAR length of a token_info column (None for TEXT)"""
    return getattr(TokenInfoRecord.__table__.c[column].type, "length", None)


def parse_score_update(data: Mapping[str, Any]) -> ScoreResult:
    """Validate an admin score body and convert it to a ScoreResult"""
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object")

    missing = _missing(data, SCORE_REQUIRED_FIELDS)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing)

    rating = data['rating']
    if rating not in RATINGS:
        raise ValidationError(f"Invalid rating '{rating}', expected one of {', '.join(RATINGS)}")

    categories = data['categories']
    summary = data['summary']
    if not isinstance(categories, Mapping):
        raise ValidationError("categories must be an object")
    if not isinstance(summary, Mapping):
        raise ValidationError("summary must be an object")

    missing = [f"categories.{k}" for k in _missing(categories, CATEGORY_KEYS)]
    missing += [f"summary.{k}" for k in _missing(summary, SUMMARY_KEYS)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing)

    return ScoreResult(
        overall_score=_as_int(data['overallScore'], 'overallScore', 0, 100),
        rating=rating,
        categories=CategoryScores(**{
            attr: _as_int(categories[wire], f"categories.{wire}", 0, 100)
            for attr, wire in CategoryScores.KEYS.items()
        }),
        summary=VulnerabilitySummary(**{
            key: _as_int(summary[key], f"summary.{key}") for key in SUMMARY_KEYS
        }),
    )


def parse_token_info_update(token_id: str, data: Mapping[str, Any]) -> TokenInfo:
    """Validate an admin token-info body against the token_info columns"""
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object")

    missing = _missing(data, INFO_REQUIRED_FIELDS)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing)

    body = dict(data)
    body['name'] = _as_text(data['name'], 'name', _column_length('name'))
    body['symbol'] = _as_text(data['symbol'], 'symbol', _column_length('symbol'))

    for key, column in (('website', 'website'), ('contractAddress', 'contract_address'),
                        ('description', 'description')):
        if data.get(key) is not None:
            body[key] = _as_text(data[key], key, _column_length(column))

    for key, upper in (('rank', None), ('audits', None), ('contractScore', 100)):
        if data.get(key) is not None:
            body[key] = _as_int(data[key], key, 0, upper)

    tags = data.get('tags') or []
    if not isinstance(tags, list):
        raise ValidationError("tags must be a list")
    body['tags'] = [_as_text(tag, f"tags[{i}]") for i, tag in enumerate(tags)]

    socials = data.get('socials') or {}
    if not isinstance(socials, Mapping):
        raise ValidationError("socials must be an object")
    body['socials'] = {
        _as_text(platform, "socials key"): _as_text(link, f"socials.{platform}")
        for platform, link in socials.items()
    }

    return TokenInfo.from_dict(body, token_id=token_id)


class BlitzProofScoreService:
    """Orchestrates scoring engine, cache and store for one token at a time"""

    def __init__(
        self,
        engine: BlitzProofScoringEngine,
        database: DatabaseManager,
        cache: CacheManager,
        structured_logger: Optional[StructuredLogger] = None
    ):
        self.engine = engine
        self.db = database
        self.cache = cache
        self.structured_logger = structured_logger

    def _record(self, score: BlitzProofScore) -> None:
        if self.structured_logger:
            self.structured_logger.log_score(score.token_id, score.to_dict())

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    async def get_score(self, token_id: str, contract_address: Optional[str] = None) -> Optional[BlitzProofScore]:
        """Cached score, else stored score, else a fresh computation"""
        cache_key = self.cache.score_key(token_id)

        cached = self._decode(await self.cache.get(cache_key), BlitzProofScore.from_dict, cache_key)
        if cached:
            return cached

        stored = await self.db.get_score(token_id)
        if stored:
            await self.cache.set(cache_key, stored.to_dict())
            return stored

        logger.info(f"No stored BlitzProof score for {token_id}, calculating")
        result = await self.engine.calculate_blitzproof_score(token_id, contract_address)

        # PersistenceError propagates here and nothing is cached
        score = await self.db.upsert_score(token_id, result, SYSTEM_ACTOR)
        await self.cache.set(cache_key, score.to_dict())
        self._record(score)
        return score

    async def calculate_score(self, token_id: str, contract_address: Optional[str] = None) -> Optional[BlitzProofScore]:
        """Drop the cached score and run the read path again"""
        await self.cache.delete(self.cache.score_key(token_id))
        return await self.get_score(token_id, contract_address)

    async def update_score(self, token_id: str, data: Mapping[str, Any], actor: str) -> BlitzProofScore:
        """Admin override of a token's score"""
        result = parse_score_update(data)

        score = await self.db.insert_score(token_id, result, actor)
        await self.cache.delete(self.cache.score_key(token_id))

        logger.info(f"Score for {token_id} set to {score.overall_score} ({score.rating}) by {actor}")
        self._record(score)
        return score

    # ------------------------------------------------------------------
    # Token info
    # ------------------------------------------------------------------

    async def get_token_info(self, token_id: str) -> Optional[TokenInfo]:
        cache_key = self.cache.info_key(token_id)

        cached = self._decode(await self.cache.get(cache_key), TokenInfo.from_dict, cache_key)
        if cached:
            return cached

        info = await self.db.get_token_info(token_id)
        if info:
            await self.cache.set(cache_key, info.to_dict())
        return info

    async def update_token_info(self, token_id: str, data: Mapping[str, Any], actor: str) -> TokenInfo:
        info = parse_token_info_update(token_id, data)

        stored = await self.db.insert_token_info(info, actor)
        await self.cache.delete(self.cache.info_key(token_id))

        logger.info(f"Token info for {token_id} updated by {actor}")
        return stored

    # ------------------------------------------------------------------
    # Combined / admin
    # ------------------------------------------------------------------

    async def get_combined(self, token_id: str) -> Optional[Tuple[Optional[BlitzProofScore], Optional[TokenInfo]]]:
        """Score and info together; None only when both are absent"""
        score_task = asyncio.ensure_future(self.get_score(token_id))
        info_task = asyncio.ensure_future(self.get_token_info(token_id))
        try:
            score, info = await asyncio.gather(score_task, info_task)
        except Exception:
            # cancel whichever lookup is still running
            score_task.cancel()
            info_task.cancel()
            raise
        if score is None and info is None:
            return None
        return score, info

    async def get_all_tokens_with_scores(self) -> List[TokenWithScore]:
        return await self.db.get_all_tokens_with_scores()

    async def delete_token_data(self, token_id: str) -> None:
        """Remove stored rows, then purge both cache entries"""
        await self.db.delete_token_data(token_id)
        await self.cache.delete(self.cache.score_key(token_id), self.cache.info_key(token_id))
        logger.info(f"Deleted all BlitzProof data for {token_id}")

    @staticmethod
    def _decode(value: Any, factory, cache_key: str):
        """Rebuild a cached value; malformed entries count as a miss"""
        if not value:
            return None
        try:
            return factory(value)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed cache entry {cache_key}: {e}")
            return None
