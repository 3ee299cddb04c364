"""
Stage 3: Name Matching
======================
Fuzzy-matches person names mentioned in the conversation against contact
names. Rules are tried in order and the first hit wins:

  exact (1.0) -> contains (0.95) -> first-only (0.7) / first-nickname (0.65)
  -> fuzzy-both (0.9) -> levenshtein (similarity >= 0.8) -> none
"""

import logging
from typing import List, Dict, Optional

from ..models.schemas import Contact, NameMatchResult, NameMatchType
from ..config.settings import NICKNAMES

logger = logging.getLogger(__name__)

LEVENSHTEIN_MIN_SIMILARITY = 0.8
LAST_NAME_MAX_DISTANCE = 2


def levenshtein_distance(s1: str, s2: str) -> int:
    """Compute Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)
    if len(s2) == 0:
        return len(s1)

    prev_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        curr_row = [i + 1]
        for j, c2 in enumerate(s2):
            cost = 0 if c1 == c2 else 1
            curr_row.append(min(
                curr_row[j] + 1,        # insert
                prev_row[j + 1] + 1,    # delete
                prev_row[j] + cost,     # substitute
            ))
        prev_row = curr_row
    return prev_row[-1]


def is_nickname(a: str, b: str, nicknames: Optional[Dict[str, List[str]]] = None) -> bool:
    """True if either name lists the other as a nickname"""
    table = nicknames if nicknames is not None else NICKNAMES
    return b in table.get(a, []) or a in table.get(b, [])


def _no_match() -> NameMatchResult:
    return NameMatchResult(match=False, score=0.0, type=NameMatchType.NONE)


def fuzzy_name_match(mentioned_name: str, contact_name: str) -> NameMatchResult:
    """
    Match one mentioned name against one contact name.

    Args:
        mentioned_name: Name as it appeared in the conversation
        contact_name: Stored contact name

    Returns:
        NameMatchResult with match flag, score and the rule that fired
    """
    mentioned = mentioned_name.lower().strip()
    contact = contact_name.lower().strip()

    if mentioned == contact:
        return NameMatchResult(match=True, score=1.0, type=NameMatchType.EXACT)

    # "Roy" in "Roy E. Bahat"; also fires for single first names
    if mentioned in contact or contact in mentioned:
        return NameMatchResult(match=True, score=0.95, type=NameMatchType.CONTAINS)

    mentioned_parts = [p for p in mentioned.split() if len(p) > 1]
    contact_parts = [p for p in contact.split() if len(p) > 1]

    if len(mentioned_parts) == 1 and len(contact_parts) >= 1:
        single = mentioned_parts[0]
        contact_first = contact_parts[0]

        if single == contact_first:
            return NameMatchResult(match=True, score=0.7, type=NameMatchType.FIRST_ONLY)

        if is_nickname(single, contact_first):
            return NameMatchResult(match=True, score=0.65, type=NameMatchType.FIRST_NICKNAME)

        return _no_match()

    if len(mentioned_parts) < 2 or len(contact_parts) < 1:
        return _no_match()

    mentioned_first, mentioned_last = mentioned_parts[0], mentioned_parts[-1]
    contact_first, contact_last = contact_parts[0], contact_parts[-1]

    first_match = (
        mentioned_first == contact_first
        or contact_first.startswith(mentioned_first)
        or mentioned_first.startswith(contact_first)
        or is_nickname(mentioned_first, contact_first)
    )

    last_match = (
        mentioned_last == contact_last
        or levenshtein_distance(mentioned_last, contact_last) <= LAST_NAME_MAX_DISTANCE
    )

    if first_match and last_match:
        return NameMatchResult(match=True, score=0.9, type=NameMatchType.FUZZY_BOTH)

    # surname-only mention; single-token mentions already returned above
    if mentioned_last == contact_last and len(mentioned_parts) == 1:
        return NameMatchResult(match=True, score=0.7, type=NameMatchType.LAST_ONLY)

    distance = levenshtein_distance(mentioned, contact)
    similarity = 1 - distance / max(len(mentioned), len(contact))
    if similarity >= LEVENSHTEIN_MIN_SIMILARITY:
        return NameMatchResult(match=True, score=similarity, type=NameMatchType.LEVENSHTEIN)

    return _no_match()


def contact_name_candidates(contact: Contact) -> List[str]:
    """Names a contact can be referred to by"""
    names = []
    if contact.name:
        names.append(contact.name)
    if contact.first_name and contact.last_name:
        names.append(f"{contact.first_name} {contact.last_name}")
    return names


class NameMatchStage:
    """
    Stage 3: Find the best name match between mentioned people and a contact.
    """

    def process(self, person_names: List[str], contact: Contact) -> NameMatchResult:
        """
        Try every mentioned name against every name the contact goes by.

        Returns:
            The strictly highest-scoring match, or a no-match result
        """
        best = _no_match()
        # a blank mention would "contain" every name
        person_names = [n for n in person_names if n and n.strip()]
        candidates = contact_name_candidates(contact)
        if not person_names or not candidates:
            return best

        for person_name in person_names:
            for candidate in candidates:
                result = fuzzy_name_match(person_name, candidate)
                if result.match and result.score > best.score:
                    best = result.model_copy(update={
                        "mentioned_name": person_name,
                        "matched_name": candidate,
                    })

        if best.match:
            logger.debug(
                'Name match: "%s" ~ "%s" (%s, %d%%)',
                best.mentioned_name, best.matched_name, best.type.value, round(best.score * 100),
            )
        return best
