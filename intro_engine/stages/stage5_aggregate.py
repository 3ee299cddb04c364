"""
Stage 5: Score Aggregation
==========================
Combines the eight component scores into one raw score and a star rating.

Weighting:
- Preset chosen by whether the conversation has an embedding
- Components with no backing data for this contact drop out and the
  remaining weights are rescaled to sum to 1 (cold start)
- Name match adds 0.3 x name score after rescaling
- Raw score clamped to [0, 1], then mapped to 0-3 stars
"""

from typing import Dict, Any, Optional

from ..models.schemas import (
    AggregateScore,
    ComponentScores,
    ContactFeatures,
    ConversationSignals,
    NameMatchResult,
)
from ..models.match_config import MatchConfig, StarThresholds
from ..config.settings import COMPONENTS, RELATIONSHIP_UNKNOWN


def score_to_stars(raw_score: float, thresholds: Optional[StarThresholds] = None) -> int:
    """Map a raw score to a 0-3 star rating"""
    thresholds = thresholds or StarThresholds()
    if raw_score >= thresholds.three_star:
        return 3
    if raw_score >= thresholds.two_star:
        return 2
    if raw_score >= thresholds.one_star:
        return 1
    return 0


def component_availability(features: ContactFeatures) -> Dict[str, bool]:
    """Which components have backing data for this contact"""
    contact = features.contact
    strength = contact.relationship_strength
    return {
        "embedding": features.has_embedding,
        "semantic": True,
        "tag_overlap": len(features.tags) > 0,
        "role_match": True,
        "geo_match": True,
        "relationship": strength is not None and strength != RELATIONSHIP_UNKNOWN,
        "personal_affinity": bool(
            contact.education
            or contact.personal_interests
            or contact.expertise_areas
            or contact.portfolio_companies
        ),
        "check_size": contact.is_investor and (
            contact.check_size_min is not None or contact.check_size_max is not None
        ),
    }


class ScoreAggregationStage:
    """
    Stage 5: Weighted, renormalized aggregation with name boost.
    """

    def __init__(self, config: MatchConfig):
        self.config = config

    def process(
        self,
        components: ComponentScores,
        features: ContactFeatures,
        name_match: NameMatchResult,
        has_embedding: bool,
    ) -> AggregateScore:
        """
        Aggregate one contact's component scores.

        Returns:
            AggregateScore with clamped raw score and star rating
        """
        weights = self.config.weights_for(has_embedding)
        available = component_availability(features)
        scores = components.as_dict()

        active_weight = sum(w for name, w in weights.items() if available.get(name))
        scale = 1 / active_weight if active_weight > 0 else 1.0

        weighted_score = sum(
            weight * scale * scores[name]
            for name, weight in weights.items()
            if available.get(name)
        )

        raw_score = weighted_score
        name_boost = 0.0
        if name_match.match:
            name_boost = self.config.name_match_boost * name_match.score
            raw_score += name_boost

        raw_score = min(max(raw_score, 0.0), 1.0)

        return AggregateScore(
            raw_score=raw_score,
            star_score=score_to_stars(raw_score, self.config.thresholds),
            weighted_score=weighted_score,
            scale=scale,
            available=available,
            name_boost=name_boost,
        )

    def build_breakdown(
        self,
        components: ComponentScores,
        aggregate: AggregateScore,
        name_match: NameMatchResult,
    ) -> Dict[str, Any]:
        """Per-component scores plus the availability map"""
        breakdown: Dict[str, Any] = dict(components.as_dict())
        breakdown["_available"] = dict(aggregate.available)
        if name_match.match:
            breakdown["name_match"] = name_match.score
        return breakdown

    def confidence_scores(
        self,
        components: ComponentScores,
        features: ContactFeatures,
        signals: ConversationSignals,
        aggregate: AggregateScore,
        name_match: NameMatchResult,
    ) -> Dict[str, float]:
        """
        How much each component score can be trusted, from the quality of the
        data behind it, plus an overall weighted average.
        """
        contact = features.contact
        available = aggregate.available

        search_terms_quality = 1.0 if len(signals.search_terms) > 2 else 0.5
        bio_quality = 0.8 if contact.bio and len(contact.bio) > 50 else 0.6

        confidence = {
            "embedding": (
                (0.9 if components.embedding > 0.5 else 0.7)
                if signals.has_embedding and available["embedding"] else 0.3
            ),
            "semantic": (
                bio_quality * search_terms_quality if components.semantic > 0.3 else 0.3
            ),
            "tag_overlap": (
                (0.9 if contact.theses and len(features.tags) > 2 else 0.6)
                if components.tag_overlap > 0.2 else 0.4
            ),
            "role_match": 0.9 if components.role_match > 0.5 else 0.5,
            "geo_match": (
                (0.8 if contact.location and "," in contact.location else 0.6)
                if components.geo_match > 0 else 0.5
            ),
            "relationship": 0.9 if available["relationship"] else 0.4,
            "personal_affinity": (
                (0.8 if components.personal_affinity > 0.3 else 0.6)
                if available["personal_affinity"] else 0.3
            ),
            "check_size": (
                (0.9 if components.check_size >= 0.5 else 0.6)
                if available["check_size"] and signals.min_check_size is not None else 0.3
            ),
        }

        weights = self.config.weights_for(signals.has_embedding)
        total_weight = sum(weights.values())
        overall = (
            sum(weights[name] * confidence[name] for name in weights) / total_weight
            if total_weight > 0 else 0.0
        )
        if name_match.match:
            overall = min(overall + 0.2, 1.0)

        result = {name: confidence[name] for name in COMPONENTS}
        result["overall"] = overall
        return result
