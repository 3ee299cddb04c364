"""
Offline weight tuning from stored score breakdowns.

Suggestions persist every component score plus the `_available` map, so a
conversation can be re-ranked under any weight vector without re-scoring
contacts. The grid search varies the embedding, tag-overlap and
personal-affinity weights, scales the remaining components to fill the rest
of the budget, and keeps the vector with the best MRR.
"""

import logging
from collections import defaultdict
from typing import List, Dict, Any, Optional, Iterator

from pydantic import BaseModel, Field

from ..config.settings import COMPONENTS, NAME_MATCH_BOOST, WEIGHTS_WITH_EMBEDDING
from ..models.match_config import ScoringWeights
from ..models.schemas import MatchSuggestion
from .metrics import ConversationLabels, evaluate_rankings

logger = logging.getLogger(__name__)

TUNABLE_COMPONENTS = ("embedding", "tag_overlap", "personal_affinity")
DEFAULT_STEPS = [round(0.05 * i, 2) for i in range(1, 10)]  # 0.05 .. 0.45
MAX_TUNED_WEIGHT = 0.95


class TuningResult(BaseModel):
    """Best weight vector found and how it compares to the current preset"""
    weights: ScoringWeights
    mrr: float
    precision_at_5: float
    baseline_mrr: float
    baseline_precision_at_5: float
    trials: int = 0
    conversations: int = 0
    suggestions: int = 0
    improved: bool = False


def rescore(
    breakdown: Dict[str, Any],
    weights: ScoringWeights,
    name_match_boost: float = NAME_MATCH_BOOST,
) -> float:
    """
    Raw score of a stored breakdown under another weight vector.

    Components marked unavailable drop out and the rest are rescaled, as in
    live aggregation. Rows without an `_available` map count every
    component as available.
    """
    available = breakdown.get("_available") or {}
    active = {
        name: weight
        for name, weight in weights.as_dict().items()
        if available.get(name, not available)
    }

    active_weight = sum(active.values())
    scale = 1 / active_weight if active_weight > 0 else 1.0
    score = sum(weight * scale * float(breakdown.get(name) or 0.0) for name, weight in active.items())

    name_score = breakdown.get("name_match")
    if name_score:
        score += name_match_boost * float(name_score)

    return min(max(score, 0.0), 1.0)


def rank_suggestions(
    suggestions: List[MatchSuggestion],
    weights: ScoringWeights,
) -> Dict[str, List[str]]:
    """conversation_id -> contact ids, best rescored first (ties keep input order)"""
    scored = defaultdict(list)
    for row in suggestions:
        scored[row.conversation_id].append((rescore(row.score_breakdown, weights), row.contact_id))

    return {
        conversation_id: [contact_id for _, contact_id in sorted(rows, key=lambda r: -r[0])]
        for conversation_id, rows in scored.items()
    }


def candidate_weights(
    steps: List[float],
    base: Optional[ScoringWeights] = None,
) -> Iterator[ScoringWeights]:
    """
    Every combination of tunable weights from `steps`, with the fixed
    components scaled so the vector sums to 1.
    """
    base = base or ScoringWeights(**WEIGHTS_WITH_EMBEDDING)
    base_values = base.model_dump()
    fixed = [name for name in COMPONENTS if name not in TUNABLE_COMPONENTS]
    fixed_sum = sum(base_values[name] for name in fixed)
    if fixed_sum == 0:
        return

    for emb in steps:
        for tag in steps:
            for affinity in steps:
                tuned_sum = emb + tag + affinity
                if tuned_sum >= MAX_TUNED_WEIGHT:
                    continue
                scale = (1.0 - tuned_sum) / fixed_sum
                values = {name: base_values[name] * scale for name in fixed}
                values.update(embedding=emb, tag_overlap=tag, personal_affinity=affinity)
                yield ScoringWeights(**values)


def _evaluate(suggestions, labels, weights):
    report = evaluate_rankings(rank_suggestions(suggestions, weights), labels)
    return report.mean_mrr, report.mean_precision_at_5


def grid_search(
    suggestions: List[MatchSuggestion],
    labels: List[ConversationLabels],
    steps: Optional[List[float]] = None,
    base: Optional[ScoringWeights] = None,
) -> TuningResult:
    """
    Search tunable weights for the best mean reciprocal rank.

    Only conversations with at least one positive label are evaluated.

    Args:
        suggestions: Stored rows carrying score breakdowns
        labels: Feedback for the conversations to tune on
        steps: Candidate values for each tunable weight
        base: Weight vector to start from (the with-embedding preset by default)

    Returns:
        TuningResult; the baseline weights when nothing beats them
    """
    base = base or ScoringWeights(**WEIGHTS_WITH_EMBEDDING)
    labelled = [label for label in labels if label.positive_contact_ids]
    conversation_ids = {label.conversation_id for label in labelled}
    rows = [row for row in suggestions if row.conversation_id in conversation_ids]

    baseline_mrr, baseline_p5 = _evaluate(rows, labelled, base)
    best_weights, best_mrr, best_p5 = base, baseline_mrr, baseline_p5

    trials = 0
    for weights in candidate_weights(steps or DEFAULT_STEPS, base):
        trials += 1
        mrr, p5 = _evaluate(rows, labelled, weights)
        if mrr > best_mrr:
            best_weights, best_mrr, best_p5 = weights, mrr, p5

    logger.info(
        "Weight tuning: %d trials over %d conversations, MRR %.3f (baseline %.3f)",
        trials, len(labelled), best_mrr, baseline_mrr,
    )

    return TuningResult(
        weights=best_weights,
        mrr=best_mrr,
        precision_at_5=best_p5,
        baseline_mrr=baseline_mrr,
        baseline_precision_at_5=baseline_p5,
        trials=trials,
        conversations=len(labelled),
        suggestions=len(rows),
        improved=best_mrr > baseline_mrr,
    )
