# data/storage/database.py

import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Any

import asyncpg
import orjson
from asyncpg.pool import Pool
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from analysis.scoring_engine import ScoreResult
from utils.errors import PersistenceError
from utils.helpers import mask_url_credentials
from .models import Base, BlitzProofScore, TokenInfo, TokenWithScore

logger = logging.getLogger(__name__)

# Failures that mean the store could not complete an operation
STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

SCORE_COLUMNS = (
    'token_id, overall_score, rating, '
    'code_security, market, governance, fundamental, community, operational, '
    'verified_count, informational_count, warnings_count, critical_count, '
    'updated_by, last_updated'
)


class DatabaseManager:
    """
    PostgreSQL store for BlitzProof scores and token info.

    Every asyncpg or connection failure surfaces as PersistenceError.
    """

    def __init__(self, config: Dict[str, Any], pool: Optional[Pool] = None):
        self.config = config
        self.pool: Optional[Pool] = pool
        self.is_connected = pool is not None

    async def connect(self) -> None:
        """Establish connection pool to PostgreSQL and create tables."""
        database_url = self.config.get('DATABASE_URL')
        if not database_url:
            raise PersistenceError("DATABASE_URL is not configured")

        logger.info(f"Connecting to database at {mask_url_credentials(database_url)}")

        try:
            self.pool = await asyncpg.create_pool(
                dsn=database_url,
                min_size=self.config.get('DB_POOL_MIN', 2),
                max_size=self.config.get('DB_POOL_MAX', 10),
                command_timeout=self.config.get('DB_COMMAND_TIMEOUT', 60),
            )
            self.is_connected = True
            await self._create_tables()
            logger.info("Successfully connected to PostgreSQL database")

        except STORE_ERRORS as e:
            logger.error(f"Failed to connect to database: {e}")
            raise PersistenceError(f"database connection failed: {e}") from e

    async def disconnect(self) -> None:
        """Close database connection pool."""
        if self.pool:
            await self.pool.close()
            self.is_connected = False
            logger.info("Disconnected from database")

    @asynccontextmanager
    async def acquire(self, operation: str = 'query'):
        """Acquire a pooled connection, translating store failures."""
        if not self.pool or not self.is_connected:
            raise PersistenceError(f"{operation}: database not connected")
        try:
            async with self.pool.acquire() as connection:
                yield connection
        except STORE_ERRORS as e:
            logger.error(f"Database error during {operation}: {e}")
            raise PersistenceError(f"{operation} failed: {e}") from e

    @asynccontextmanager
    async def transaction(self, operation: str = 'transaction'):
        """
        Transaction context manager.

        Usage:
            async with db.transaction('delete') as conn:
                await conn.execute("DELETE FROM blitzproof_scores ...")
                await conn.execute("DELETE FROM token_info ...")
        """
        async with self.acquire(operation) as connection:
            async with connection.transaction():
                yield connection

    async def _create_tables(self) -> None:
        """Create tables and indexes from the SQLAlchemy metadata."""
        dialect = postgresql.dialect()
        async with self.acquire('create tables') as conn:
            for table in Base.metadata.sorted_tables:
                await conn.execute(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)))
                for index in table.indexes:
                    await conn.execute(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    @staticmethod
    def _score_values(token_id: str, result: ScoreResult, updated_by: str) -> List[Any]:
        categories = result.categories
        summary = result.summary
        return [
            token_id,
            result.overall_score,
            result.rating,
            categories.code_security,
            categories.market,
            categories.governance,
            categories.fundamental,
            categories.community,
            categories.operational,
            summary.verified,
            summary.informational,
            summary.warnings,
            summary.critical,
            updated_by,
        ]

    async def get_score(self, token_id: str) -> Optional[BlitzProofScore]:
        """Most recent score row for a token."""
        query = """
            SELECT * FROM blitzproof_scores
            WHERE token_id = $1
            ORDER BY last_updated DESC
            LIMIT 1
        """
        async with self.acquire('get score') as conn:
            row = await conn.fetchrow(query, token_id)
        return BlitzProofScore.from_row(row) if row else None

    async def upsert_score(self, token_id: str, result: ScoreResult, updated_by: str) -> BlitzProofScore:
        """Insert or replace the score row for a token (system write path)."""
        query = f"""
            INSERT INTO blitzproof_scores ({SCORE_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, NOW())
            ON CONFLICT (token_id) DO UPDATE SET
                overall_score = EXCLUDED.overall_score,
                rating = EXCLUDED.rating,
                code_security = EXCLUDED.code_security,
                market = EXCLUDED.market,
                governance = EXCLUDED.governance,
                fundamental = EXCLUDED.fundamental,
                community = EXCLUDED.community,
                operational = EXCLUDED.operational,
                verified_count = EXCLUDED.verified_count,
                informational_count = EXCLUDED.informational_count,
                warnings_count = EXCLUDED.warnings_count,
                critical_count = EXCLUDED.critical_count,
                updated_by = EXCLUDED.updated_by,
                last_updated = NOW()
            RETURNING *
        """
        async with self.acquire('upsert score') as conn:
            row = await conn.fetchrow(query, *self._score_values(token_id, result, updated_by))
        return BlitzProofScore.from_row(row)

    async def insert_score(self, token_id: str, result: ScoreResult, updated_by: str) -> BlitzProofScore:
        """Plain insert of an admin-supplied score; a duplicate token_id fails."""
        query = f"""
            INSERT INTO blitzproof_scores ({SCORE_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, NOW())
            RETURNING *
        """
        async with self.acquire('insert score') as conn:
            row = await conn.fetchrow(query, *self._score_values(token_id, result, updated_by))
        return BlitzProofScore.from_row(row)

    # ------------------------------------------------------------------
    # Token info
    # ------------------------------------------------------------------

    async def get_token_info(self, token_id: str) -> Optional[TokenInfo]:
        query = """
            SELECT * FROM token_info
            WHERE token_id = $1
            ORDER BY last_updated DESC
            LIMIT 1
        """
        async with self.acquire('get token info') as conn:
            row = await conn.fetchrow(query, token_id)
        return TokenInfo.from_row(row) if row else None

    async def insert_token_info(self, info: TokenInfo, updated_by: str) -> TokenInfo:
        query = """
            INSERT INTO token_info (
                token_id, name, symbol, rank, audits, website, contract_address,
                contract_score, tags, socials, description, last_updated, updated_by
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9::text[], $10::jsonb, $11, NOW(), $12)
            RETURNING *
        """
        async with self.acquire('insert token info') as conn:
            row = await conn.fetchrow(
                query,
                info.token_id,
                info.name,
                info.symbol,
                info.rank,
                info.audits,
                info.website,
                info.contract_address,
                info.contract_score,
                list(info.tags),
                orjson.dumps(info.socials).decode(),
                info.description,
                updated_by
            )
        return TokenInfo.from_row(row)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def get_all_tokens_with_scores(self) -> List[TokenWithScore]:
        """Every scored token joined with its info, newest first."""
        query = """
            SELECT
                bs.*,
                ti.name, ti.symbol, ti.rank, ti.audits, ti.website,
                ti.contract_address, ti.contract_score, ti.tags, ti.socials, ti.description
            FROM blitzproof_scores bs
            LEFT JOIN token_info ti ON bs.token_id = ti.token_id
            ORDER BY bs.last_updated DESC
        """
        async with self.acquire('list tokens') as conn:
            rows = await conn.fetch(query)
        return [TokenWithScore.from_row(row) for row in rows]

    async def delete_token_data(self, token_id: str) -> None:
        """Remove the score row, then the info row."""
        async with self.transaction('delete token data') as conn:
            await conn.execute('DELETE FROM blitzproof_scores WHERE token_id = $1', token_id)
            await conn.execute('DELETE FROM token_info WHERE token_id = $1', token_id)
        logger.info(f"Deleted stored data for {token_id}")

    async def health_check(self) -> Dict[str, Any]:
        try:
            async with self.acquire('health check') as conn:
                await conn.fetchval('SELECT 1')
            return {'status': 'healthy', 'connected': True}
        except PersistenceError as e:
            return {'status': 'unhealthy', 'connected': False, 'error': str(e)}
