"""
Stage 4: Component Scoring
==========================
Eight independent scorers, each a pure function of the conversation signals
and one contact's features:

- Embedding:         cosine similarity of conversation vs bio/thesis vectors
- Semantic:          share of conversation terms found in the profile text
- Tag overlap:       (weighted) Jaccard of conversation terms vs contact tags
- Role match:        hiring roles vs title, investor types vs contact type
- Geo match:         extracted geos vs contact location
- Relationship:      stored relationship strength
- Personal affinity: school, interests, portfolio, expertise overlap
- Check size:        conversation raise vs contact check-size range
"""

import math
from typing import List, Dict, Optional, Tuple

from ..models.schemas import (
    ComponentScores,
    ContactFeatures,
    ConversationSignals,
    WeightedTerm,
)
from ..config.settings import RELATIONSHIP_UNKNOWN, TAG_REASON_THRESHOLD


# =============================================================================
# Similarity helpers
# =============================================================================

def matches_any(value: str, items: List[str]) -> bool:
    """Case-insensitive substring match in either direction"""
    value_lower = value.lower().strip()
    if not value_lower:
        return False
    for item in items:
        item_lower = (item or "").lower().strip()
        if item_lower and (item_lower in value_lower or value_lower in item_lower):
            return True
    return False


def cosine_similarity(vec1: List[float], vec2: List[float]) -> float:
    if len(vec1) != len(vec2):
        return 0.0

    dot_product = 0.0
    norm1 = 0.0
    norm2 = 0.0
    for a, b in zip(vec1, vec2):
        dot_product += a * b
        norm1 += a * a
        norm2 += b * b

    magnitude = math.sqrt(norm1) * math.sqrt(norm2)
    return 0.0 if magnitude == 0 else dot_product / magnitude


def jaccard_similarity(set1: List[str], set2: List[str]) -> float:
    """Intersection over union, case-insensitive"""
    if not set1 and not set2:
        return 0.0
    s1 = {s.lower() for s in set1}
    s2 = {s.lower() for s in set2}
    union = s1 | s2
    return len(s1 & s2) / len(union) if union else 0.0


def weighted_jaccard_similarity(weighted: List[WeightedTerm], tags: List[str]) -> float:
    """
    sum(weight_i * hit_i) / max(sum(weight_i), |tags|)
    """
    if not weighted or not tags:
        return 0.0

    tag_set = {t.lower() for t in tags}
    weighted_hits = 0.0
    total_weight = 0.0
    for term in weighted:
        total_weight += term.weight
        if term.value.lower() in tag_set:
            weighted_hits += term.weight

    denominator = max(total_weight, len(tag_set))
    return weighted_hits / denominator if denominator > 0 else 0.0


# =============================================================================
# Component scorers
# =============================================================================

def embedding_score(
    conversation: Optional[List[float]],
    bio: Optional[List[float]],
    thesis: Optional[List[float]],
) -> float:
    """Best of bio/thesis cosine similarity, clamped to [0, 1]"""
    if conversation is None:
        return 0.0
    similarities = [cosine_similarity(conversation, v) for v in (bio, thesis) if v is not None]
    similarities = [s for s in similarities if math.isfinite(s)]
    if not similarities:
        return 0.0
    return max(0.0, min(1.0, max(similarities)))


def semantic_score(search_terms: List[str], contact_text: str) -> float:
    if not search_terms:
        return 0.0
    hits = sum(1 for term in search_terms if term.lower() in contact_text)
    return min(hits / len(search_terms), 1.0)


def tag_overlap_score(signals: ConversationSignals, contact_tags: List[str]) -> float:
    if signals.weighted_entities:
        return weighted_jaccard_similarity(signals.weighted_entities, contact_tags)
    return jaccard_similarity(signals.conversation_tags, contact_tags)


def matched_conversation_tags(conversation_tags: List[str], contact_tags: List[str]) -> List[str]:
    """Conversation tags that appear inside some contact tag"""
    lowered = [t.lower() for t in contact_tags]
    matched = []
    for tag in conversation_tags:
        needle = tag.lower()
        if needle and any(needle in ct for ct in lowered) and tag not in matched:
            matched.append(tag)
    return matched


def role_match_score(
    title: Optional[str],
    hiring_roles: List[str],
    contact_types: List[str],
    investor_types: List[str],
) -> Tuple[float, List[str]]:
    """
    Returns:
        (score, contact type labels that matched a wanted investor type)
    """
    score = 0.0
    if title and hiring_roles:
        title_lower = title.lower()
        if any(role and role.lower() in title_lower for role in hiring_roles):
            score = 1.0

    matched_types: List[str] = []
    if investor_types and contact_types:
        for investor_type in investor_types:
            for contact_type in contact_types:
                if matches_any(contact_type, [investor_type]):
                    score = max(score, 0.8)
                    if contact_type not in matched_types:
                        matched_types.append(contact_type)
                    break

    return score, matched_types


def geo_match_score(geos: List[str], location: Optional[str]) -> float:
    if not geos or not location:
        return 0.0
    return 1.0 if any(matches_any(geo, [location]) for geo in geos) else 0.0


def relationship_score(strength: Optional[int]) -> float:
    return (strength if strength is not None else RELATIONSHIP_UNKNOWN) / 100


def check_size_fit(
    conv_min: Optional[float],
    conv_max: Optional[float],
    contact_min: Optional[float],
    contact_max: Optional[float],
) -> float:
    """
    How well the conversation's raise fits a contact's check-size range (0-1).

    Containment scores 1.0, partial overlap 0.5-1.0, and disjoint ranges decay
    exponentially with the gap but never exceed 0.3.
    """
    if conv_min is None and conv_max is None:
        return 0.0
    if contact_min is None and contact_max is None:
        return 0.0

    # a single bound is a point value
    c_min = conv_min if conv_min is not None else conv_max
    c_max = conv_max if conv_max is not None else conv_min
    t_min = contact_min if contact_min is not None else contact_max
    t_max = contact_max if contact_max is not None else contact_min

    if t_min <= c_min and c_max <= t_max:
        return 1.0

    overlap_start = max(c_min, t_min)
    overlap_end = min(c_max, t_max)
    if overlap_start <= overlap_end:
        overlap_len = overlap_end - overlap_start
        conv_len = (c_max - c_min) or 1
        return min(0.5 + 0.5 * (overlap_len / conv_len), 1.0)

    gap = min(abs(c_min - t_max), abs(t_min - c_max))
    scale = max(c_max, t_max) or 1
    return min(math.exp(-3 * gap / scale), 0.3)


def personal_affinity_score(
    signals: ConversationSignals,
    features: ContactFeatures,
) -> Tuple[float, Dict[str, List[str]]]:
    """
    Additive affinity between the target person and a contact, capped at 1.0.

    Returns:
        (score, evidence keyed by education / interests / portfolio / expertise)
    """
    contact = features.contact
    score = 0.0
    evidence: Dict[str, List[str]] = {}

    if signals.target_school:
        for entry in contact.education:
            if entry.school and matches_any(entry.school, [signals.target_school]):
                score += 0.4
                evidence["education"] = [entry.school]
                break

    if signals.target_interests and contact.personal_interests:
        shared = [
            interest for interest in signals.target_interests
            if matches_any(interest, contact.personal_interests)
        ]
        if shared:
            score += min(0.2 * len(shared), 0.4)
            evidence["interests"] = shared

    if signals.target_companies and contact.portfolio_companies:
        overlap = [
            company for company in contact.portfolio_companies
            if matches_any(company, signals.target_companies)
        ]
        if overlap:
            score += 0.3
            evidence["portfolio"] = overlap

    if signals.technology_keywords and contact.expertise_areas:
        overlap = [
            area for area in contact.expertise_areas
            if matches_any(area, signals.technology_keywords)
        ]
        if overlap:
            score += min(0.15 * len(overlap), 0.3)
            evidence["expertise"] = overlap

    return min(score, 1.0), evidence


# =============================================================================
# Stage
# =============================================================================

class ComponentScoringStage:
    """
    Stage 4: Run all eight scorers for one contact.
    """

    def process(self, signals: ConversationSignals, features: ContactFeatures) -> ComponentScores:
        """
        Score one contact against the conversation.

        Returns:
            ComponentScores with reason evidence in evaluation order
        """
        contact = features.contact
        evidence: Dict[str, List[str]] = {}

        embedding = embedding_score(
            signals.embedding, features.bio_embedding, features.thesis_embedding
        )

        semantic = semantic_score(signals.search_terms, features.text)

        tag_overlap = tag_overlap_score(signals, features.tags)
        if tag_overlap > TAG_REASON_THRESHOLD:
            matched = matched_conversation_tags(signals.conversation_tags, features.tags)
            if matched:
                evidence["tags"] = matched[:3]

        role_match, investor_matches = role_match_score(
            contact.title, signals.hiring_roles, contact.contact_type, signals.investor_types
        )
        if investor_matches:
            evidence["investor_types"] = investor_matches

        check_size = 0.0
        if contact.is_investor:
            check_size = check_size_fit(
                signals.min_check_size,
                signals.max_check_size,
                contact.check_size_min,
                contact.check_size_max,
            )
            if check_size >= 0.5:
                evidence["check_size"] = [
                    format_check_range(contact.check_size_min, contact.check_size_max)
                ]

        geo_match = geo_match_score(signals.geos, contact.location)
        if geo_match > 0:
            evidence["location"] = [contact.location]

        relationship = relationship_score(contact.relationship_strength)

        personal_affinity, affinity_evidence = personal_affinity_score(signals, features)
        evidence.update(affinity_evidence)

        return ComponentScores(
            embedding=embedding,
            semantic=semantic,
            tag_overlap=tag_overlap,
            role_match=role_match,
            geo_match=geo_match,
            relationship=relationship,
            personal_affinity=personal_affinity,
            check_size=check_size,
            evidence=evidence,
        )


def format_amount(amount: float) -> str:
    """5_000_000 -> "$5M", 250_000 -> "$250K" """
    if amount >= 1_000_000:
        return f"${amount / 1_000_000:g}M"
    if amount >= 1_000:
        return f"${amount / 1_000:g}K"
    return f"${amount:g}"


def format_check_range(low: Optional[float], high: Optional[float]) -> str:
    if low is not None and high is not None and low != high:
        return f"{format_amount(low)}-{format_amount(high)}"
    return format_amount(low if low is not None else high)
