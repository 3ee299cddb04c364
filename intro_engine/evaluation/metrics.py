"""
Offline ranking evaluation against labelled feedback.

Each conversation carries the contact ids users marked as good (positive)
or bad (negative) introductions. Metrics use binary relevance.
"""

import math
from typing import List, Dict, Set, Iterable

from pydantic import BaseModel, Field


class ConversationLabels(BaseModel):
    """Feedback labels for one conversation"""
    conversation_id: str
    positive_contact_ids: List[str] = Field(default_factory=list)
    negative_contact_ids: List[str] = Field(default_factory=list)


class ConversationMetrics(BaseModel):
    conversation_id: str
    total_matches: int
    precision_at_5: float
    precision_at_10: float
    hit_rate_at_1: float
    mrr: float
    ndcg_at_5: float
    false_positives_in_top_5: List[str] = Field(default_factory=list)
    missed_positives: List[str] = Field(default_factory=list)


class EvaluationReport(BaseModel):
    conversations: List[ConversationMetrics] = Field(default_factory=list)
    # macro averages across conversations
    mean_precision_at_5: float = 0.0
    mean_precision_at_10: float = 0.0
    mean_hit_rate_at_1: float = 0.0
    mean_mrr: float = 0.0
    mean_ndcg_at_5: float = 0.0


def precision_at_k(ranked: List[str], positives: Set[str], k: int) -> float:
    """
    Hits in the top k over min(k, |positives|).

    An empty ranking is perfect only when there is nothing to find.
    """
    top_k = ranked[:k]
    if not top_k:
        return 1.0 if not positives else 0.0
    hits = sum(1 for contact_id in top_k if contact_id in positives)
    return hits / min(k, len(positives) or 1)


def hit_rate_at_k(ranked: List[str], positives: Set[str], k: int = 1) -> float:
    return 1.0 if any(contact_id in positives for contact_id in ranked[:k]) else 0.0


def reciprocal_rank(ranked: List[str], positives: Set[str]) -> float:
    for i, contact_id in enumerate(ranked):
        if contact_id in positives:
            return 1 / (i + 1)
    return 0.0


def ndcg_at_k(ranked: List[str], positives: Set[str], k: int) -> float:
    dcg = sum(
        1 / math.log2(i + 2)
        for i, contact_id in enumerate(ranked[:k])
        if contact_id in positives
    )
    idcg = sum(1 / math.log2(i + 2) for i in range(min(len(positives), k)))
    return dcg / idcg if idcg > 0 else 0.0


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def evaluate_rankings(
    rankings: Dict[str, List[str]],
    labels: List[ConversationLabels],
) -> EvaluationReport:
    """
    Score ranked contact ids per conversation against feedback labels.

    Args:
        rankings: conversation_id -> contact ids, best first
        labels: Feedback for each conversation to evaluate

    Returns:
        Per-conversation metrics and their macro averages
    """
    results = []
    for label in labels:
        ranked = rankings.get(label.conversation_id, [])
        positives = set(label.positive_contact_ids)
        negatives = set(label.negative_contact_ids)

        results.append(ConversationMetrics(
            conversation_id=label.conversation_id,
            total_matches=len(ranked),
            precision_at_5=precision_at_k(ranked, positives, 5),
            precision_at_10=precision_at_k(ranked, positives, 10),
            hit_rate_at_1=hit_rate_at_k(ranked, positives, 1),
            mrr=reciprocal_rank(ranked, positives),
            ndcg_at_5=ndcg_at_k(ranked, positives, 5),
            false_positives_in_top_5=[c for c in ranked[:5] if c in negatives],
            missed_positives=[c for c in label.positive_contact_ids if c not in ranked],
        ))

    return EvaluationReport(
        conversations=results,
        mean_precision_at_5=_mean(r.precision_at_5 for r in results),
        mean_precision_at_10=_mean(r.precision_at_10 for r in results),
        mean_hit_rate_at_1=_mean(r.hit_rate_at_1 for r in results),
        mean_mrr=_mean(r.mrr for r in results),
        mean_ndcg_at_5=_mean(r.ndcg_at_5 for r in results),
    )
