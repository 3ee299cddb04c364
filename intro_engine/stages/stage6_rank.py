"""
Stage 6: Ranking
================
Turns scored contacts into the final ordered candidate list:
- drop zero-star contacts
- sort by (stars desc, raw score desc)
- keep the top N
- assemble human-readable reasons in a fixed order
"""

from typing import List, Dict

from ..models.schemas import Contact, MatchCandidate, NameMatchResult
from ..models.match_config import MatchConfig


def name_reason(contact: Contact, name_match: NameMatchResult) -> str:
    if name_match.score >= 0.95:
        return f'Name mentioned: "{contact.name}"'
    return f'Similar name: "{contact.name}" ({round(name_match.score * 100)}%)'


def build_reasons(
    contact: Contact,
    name_match: NameMatchResult,
    evidence: Dict[str, List[str]],
) -> List[str]:
    """
    Reasons in display order: name, tags, investor type, check size,
    location, education, interests, portfolio, expertise.
    """
    reasons = []

    if name_match.match:
        reasons.append(name_reason(contact, name_match))

    if evidence.get("tags"):
        reasons.append(f"Matches: {', '.join(evidence['tags'])}")

    for contact_type in evidence.get("investor_types", []):
        reasons.append(f"{contact_type} investor")

    if evidence.get("check_size"):
        reasons.append(f"Check size: {evidence['check_size'][0]}")

    if evidence.get("location"):
        reasons.append(f"Location: {evidence['location'][0]}")

    if evidence.get("education"):
        reasons.append(f"Same school: {evidence['education'][0]}")

    if evidence.get("interests"):
        reasons.append(f"Shared interests: {', '.join(evidence['interests'])}")

    if evidence.get("portfolio"):
        reasons.append(f"Portfolio overlap: {', '.join(evidence['portfolio'])}")

    if evidence.get("expertise"):
        reasons.append(f"Expertise: {', '.join(evidence['expertise'])}")

    return reasons


def rank_candidates(candidates: List[MatchCandidate], max_results: int) -> List[MatchCandidate]:
    """Drop zero-star candidates, sort, truncate"""
    surviving = [c for c in candidates if c.star_score >= 1]
    # sorted() is stable, so ties keep contact input order
    ranked = sorted(surviving, key=lambda c: (-c.star_score, -c.raw_score))
    return ranked[:max_results]


class RankingStage:
    """
    Stage 6: Final ordering of match candidates.
    """

    def __init__(self, config: MatchConfig):
        self.config = config

    def process(self, candidates: List[MatchCandidate]) -> List[MatchCandidate]:
        return rank_candidates(candidates, self.config.max_results)
