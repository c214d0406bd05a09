# data/storage/models.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any, List, Mapping

import orjson
from sqlalchemy import (
    Column, String, Integer, Text, Index, CheckConstraint, ARRAY
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP

from analysis.scoring_engine import CategoryScores, ScoreResult, VulnerabilitySummary
from utils.constants import SYSTEM_ACTOR
from utils.helpers import parse_timestamp, safe_int

Base = declarative_base()


class BlitzProofScoreRecord(Base):
    """Persisted BlitzProof score, one row per token."""
    __tablename__ = 'blitzproof_scores'

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_id = Column(String(100), unique=True, nullable=False)

    overall_score = Column(Integer, nullable=False)
    rating = Column(String(3), nullable=False)

    # Category scores
    code_security = Column(Integer, nullable=False, default=0)
    market = Column(Integer, nullable=False, default=0)
    governance = Column(Integer, nullable=False, default=0)
    fundamental = Column(Integer, nullable=False, default=0)
    community = Column(Integer, nullable=False, default=0)
    operational = Column(Integer, nullable=False, default=0)

    # Vulnerability summary
    verified_count = Column(Integer, nullable=False, default=0)
    informational_count = Column(Integer, nullable=False, default=0)
    warnings_count = Column(Integer, nullable=False, default=0)
    critical_count = Column(Integer, nullable=False, default=0)

    updated_by = Column(String(100), nullable=False, default=SYSTEM_ACTOR)
    last_updated = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_blitzproof_scores_last_updated', 'last_updated'),
        CheckConstraint('overall_score BETWEEN 0 AND 100', name='check_overall_score_range'),
    )


class TokenInfoRecord(Base):
    """Admin-maintained token metadata."""
    __tablename__ = 'token_info'

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_id = Column(String(100), unique=True, nullable=False)

    name = Column(String(200), nullable=False)
    symbol = Column(String(50), nullable=False)
    rank = Column(Integer, default=0)
    audits = Column(Integer, default=0)
    website = Column(Text)
    contract_address = Column(String(100))
    contract_score = Column(Integer, default=0)
    tags = Column(ARRAY(Text))
    socials = Column(JSONB)
    description = Column(Text)

    updated_by = Column(String(100), nullable=False, default=SYSTEM_ACTOR)
    last_updated = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _load_socials(value: Any) -> Dict[str, str]:
    """JSONB comes back from asyncpg as text unless a codec is registered"""
    if value is None:
        return {}
    if isinstance(value, (str, bytes)):
        return orjson.loads(value)
    return dict(value)


@dataclass
class BlitzProofScore:
    """A persisted score as served to clients."""
    token_id: str
    overall_score: int
    rating: str
    categories: CategoryScores
    summary: VulnerabilitySummary
    last_updated: Optional[datetime] = None
    updated_by: str = SYSTEM_ACTOR

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase JSON form."""
        return {
            'tokenId': self.token_id,
            'overallScore': self.overall_score,
            'rating': self.rating,
            'categories': self.categories.to_dict(),
            'summary': self.summary.to_dict(),
            'lastUpdated': _isoformat(self.last_updated),
            'updatedBy': self.updated_by,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BlitzProofScore":
        return cls(
            token_id=data['tokenId'],
            overall_score=int(data['overallScore']),
            rating=data['rating'],
            categories=CategoryScores.from_dict(data['categories']),
            summary=VulnerabilitySummary.from_dict(data['summary']),
            last_updated=parse_timestamp(data.get('lastUpdated')),
            updated_by=data.get('updatedBy') or SYSTEM_ACTOR,
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "BlitzProofScore":
        return cls(
            token_id=row['token_id'],
            overall_score=row['overall_score'],
            rating=row['rating'],
            categories=CategoryScores(
                code_security=row['code_security'],
                market=row['market'],
                governance=row['governance'],
                fundamental=row['fundamental'],
                community=row['community'],
                operational=row['operational'],
            ),
            summary=VulnerabilitySummary(
                verified=row['verified_count'],
                informational=row['informational_count'],
                warnings=row['warnings_count'],
                critical=row['critical_count'],
            ),
            last_updated=row['last_updated'],
            updated_by=row['updated_by'],
        )

    @classmethod
    def from_result(cls, token_id: str, result: ScoreResult, updated_by: str = SYSTEM_ACTOR) -> "BlitzProofScore":
        return cls(
            token_id=token_id,
            overall_score=result.overall_score,
            rating=result.rating,
            categories=result.categories,
            summary=result.summary,
            updated_by=updated_by,
        )


@dataclass
class TokenInfo:
    """Descriptive token metadata."""
    token_id: str
    name: str
    symbol: str
    rank: int = 0
    audits: int = 0
    website: str = ''
    contract_address: str = ''
    contract_score: int = 0
    tags: List[str] = field(default_factory=list)
    socials: Dict[str, str] = field(default_factory=dict)
    description: str = ''
    last_updated: Optional[datetime] = None
    updated_by: str = SYSTEM_ACTOR

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tokenId': self.token_id,
            'name': self.name,
            'symbol': self.symbol,
            'rank': self.rank,
            'audits': self.audits,
            'website': self.website,
            'contractAddress': self.contract_address,
            'contractScore': self.contract_score,
            'tags': list(self.tags),
            'socials': dict(self.socials),
            'description': self.description,
            'lastUpdated': _isoformat(self.last_updated),
            'updatedBy': self.updated_by,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], token_id: Optional[str] = None) -> "TokenInfo":
        """Build from a cached value or an admin request body."""
        return cls(
            token_id=token_id or data['tokenId'],
            name=data['name'],
            symbol=data['symbol'],
            rank=safe_int(data.get('rank')),
            audits=safe_int(data.get('audits')),
            website=data.get('website') or '',
            contract_address=data.get('contractAddress') or '',
            contract_score=safe_int(data.get('contractScore')),
            tags=list(data.get('tags') or []),
            socials=dict(data.get('socials') or {}),
            description=data.get('description') or '',
            last_updated=parse_timestamp(data.get('lastUpdated')),
            updated_by=data.get('updatedBy') or SYSTEM_ACTOR,
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TokenInfo":
        return cls(
            token_id=row['token_id'],
            name=row['name'] or 'Unknown',
            symbol=row['symbol'] or 'UNKNOWN',
            rank=row['rank'] or 0,
            audits=row['audits'] or 0,
            website=row['website'] or '',
            contract_address=row['contract_address'] or '',
            contract_score=row['contract_score'] or 0,
            tags=list(row['tags'] or []),
            socials=_load_socials(row['socials']),
            description=row['description'] or '',
            last_updated=row['last_updated'],
            updated_by=row['updated_by'],
        )


@dataclass
class TokenWithScore:
    """Admin listing row: a score with its (possibly missing) token info."""
    score: BlitzProofScore
    name: str = 'Unknown'
    symbol: str = 'UNKNOWN'
    rank: int = 0
    audits: int = 0
    website: str = ''
    contract_address: str = ''
    contract_score: int = 0
    tags: List[str] = field(default_factory=list)
    socials: Dict[str, str] = field(default_factory=dict)
    description: str = ''

    def to_dict(self) -> Dict[str, Any]:
        data = self.score.to_dict()
        data.update({
            'name': self.name,
            'symbol': self.symbol,
            'rank': self.rank,
            'audits': self.audits,
            'website': self.website,
            'contractAddress': self.contract_address,
            'contractScore': self.contract_score,
            'tags': list(self.tags),
            'socials': dict(self.socials),
            'description': self.description,
        })
        return data

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TokenWithScore":
        return cls(
            score=BlitzProofScore.from_row(row),
            name=row['name'] or 'Unknown',
            symbol=row['symbol'] or 'UNKNOWN',
            rank=row['rank'] or 0,
            audits=row['audits'] or 0,
            website=row['website'] or '',
            contract_address=row['contract_address'] or '',
            contract_score=row['contract_score'] or 0,
            tags=list(row['tags'] or []),
            socials=_load_socials(row['socials']),
            description=row['description'] or '',
        )
