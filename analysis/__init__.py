"""
Analysis - BlitzProof scoring engine
"""

from .scoring_engine import (
    BlitzProofScoringEngine,
    CategoryScores,
    ScoreResult,
    VulnerabilitySummary
)

__all__ = [
    'BlitzProofScoringEngine',
    'CategoryScores',
    'ScoreResult',
    'VulnerabilitySummary'
]
