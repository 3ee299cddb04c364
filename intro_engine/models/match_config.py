"""
Match Configuration Models
"""

from typing import Dict, Optional
from pydantic import BaseModel, Field
from datetime import datetime
import uuid

from ..config.settings import (
    WEIGHTS_WITH_EMBEDDING,
    WEIGHTS_WITHOUT_EMBEDDING,
    STAR_THRESHOLDS,
    NAME_MATCH_BOOST,
    MAX_MATCHES,
    EXPLAIN_TOP_N,
    EXPLAIN_MIN_STARS,
    MATCH_VERSION,
)


class ScoringWeights(BaseModel):
    """Weight of each scoring component. Missing components weigh zero."""
    embedding: float = 0.0
    semantic: float = 0.0
    tag_overlap: float = 0.0
    role_match: float = 0.0
    geo_match: float = 0.0
    relationship: float = 0.0
    personal_affinity: float = 0.0
    check_size: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        """Only the components that carry weight"""
        return {k: v for k, v in self.model_dump().items() if v > 0}


class StarThresholds(BaseModel):
    """Raw-score breakpoints for the star rating"""
    three_star: float = STAR_THRESHOLDS["three_star"]
    two_star: float = STAR_THRESHOLDS["two_star"]
    one_star: float = STAR_THRESHOLDS["one_star"]


class ExplanationSettings(BaseModel):
    """Which candidates get an LLM explanation"""
    enabled: bool = True
    top_n: int = EXPLAIN_TOP_N
    min_stars: int = EXPLAIN_MIN_STARS


class MatchConfig(BaseModel):
    """Complete matching configuration"""
    config_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Default Matching"
    description: Optional[str] = None

    # Weight presets, selected per run by whether a conversation embedding exists
    weights_with_embedding: ScoringWeights = Field(
        default_factory=lambda: ScoringWeights(**WEIGHTS_WITH_EMBEDDING)
    )
    weights_without_embedding: ScoringWeights = Field(
        default_factory=lambda: ScoringWeights(**WEIGHTS_WITHOUT_EMBEDDING)
    )

    thresholds: StarThresholds = Field(default_factory=StarThresholds)
    name_match_boost: float = NAME_MATCH_BOOST
    max_results: int = MAX_MATCHES
    explanations: ExplanationSettings = Field(default_factory=ExplanationSettings)
    match_version: str = MATCH_VERSION

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def weights_for(self, has_embedding: bool) -> Dict[str, float]:
        """Pick the weight preset for this run"""
        if has_embedding:
            return self.weights_with_embedding.as_dict()
        return self.weights_without_embedding.as_dict()

    def update(self, **kwargs):
        """Update configuration and set updated_at"""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
        self.updated_at = datetime.utcnow()
        return self


def create_default_match_config(
    max_results: Optional[int] = None,
    explain_top_n: Optional[int] = None,
    name_match_boost: Optional[float] = None,
) -> MatchConfig:
    """
    Factory function to create a match config with the production presets
    """
    config = MatchConfig()

    if max_results is not None:
        config.max_results = max_results

    if explain_top_n is not None:
        config.explanations.top_n = explain_top_n

    if name_match_boost is not None:
        config.name_match_boost = name_match_boost

    return config
