"""
Scoring configuration for the BlitzProof engine.

Weights, rating bands and severity penalties are immutable values handed to
the engine, so alternate weightings can be tested or deployed without touching
the scoring code.
"""

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Mapping, Tuple

from utils.errors import ConfigurationError


@dataclass(frozen=True)
class ScoringWeights:
    """Category weights for the overall score (must sum to 1.0)"""
    code_security: float = 0.30
    market: float = 0.20
    governance: float = 0.15
    fundamental: float = 0.15
    community: float = 0.10
    operational: float = 0.10

    def __post_init__(self):
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ConfigurationError(f"Weight {f.name} must be non-negative")
        if abs(self.total() - 1.0) > 1e-9:
            raise ConfigurationError(
                f"Category weights must sum to 1.0, got {self.total():.4f}"
            )

    def total(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> Mapping[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class RatingBand:
    """Inclusive lower bound for a letter rating"""
    min_score: int
    rating: str


DEFAULT_RATING_BANDS: Tuple[RatingBand, ...] = (
    RatingBand(90, "AAA"),
    RatingBand(80, "AA"),
    RatingBand(70, "A"),
    RatingBand(60, "BBB"),
    RatingBand(50, "BB"),
    RatingBand(40, "B"),
    RatingBand(30, "CCC"),
    RatingBand(20, "CC"),
    RatingBand(10, "C"),
)

DEFAULT_SEVERITY_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "critical": 25,
    "high": 15,
    "medium": 8,
    "low": 3,
})


@dataclass(frozen=True)
class ScoringConfig:
    """Everything the engine needs besides the raw data"""
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    rating_bands: Tuple[RatingBand, ...] = DEFAULT_RATING_BANDS
    floor_rating: str = "D"
    severity_weights: Mapping[str, float] = field(
        default_factory=lambda: DEFAULT_SEVERITY_WEIGHTS
    )

    def __post_init__(self):
        # Bands are matched top-down, so keep them sorted highest first
        ordered = tuple(sorted(self.rating_bands, key=lambda b: b.min_score, reverse=True))
        object.__setattr__(self, "rating_bands", ordered)
        if not isinstance(self.severity_weights, MappingProxyType):
            object.__setattr__(
                self, "severity_weights", MappingProxyType(dict(self.severity_weights))
            )


DEFAULT_SCORING_CONFIG = ScoringConfig()
