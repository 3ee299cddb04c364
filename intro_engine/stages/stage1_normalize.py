"""
Stage 1: Entity & Context Normalization
=======================================
Turns raw conversation entities and rich context into typed signal groups.
Runs once per matching run.

Produces:
- sectors / stages / geos / person names
- parsed check-size range
- confidence-weighted entity list (plus context keywords)
- normalized conversation embedding (or None)
"""

import re
import json
import math
import logging
from typing import List, Optional, Any

from ..models.schemas import (
    ConversationEntity,
    ConversationContext,
    ConversationSignals,
    EntityType,
    WeightedTerm,
)
from ..config.settings import (
    CONTEXT_KEYWORD_WEIGHT,
    EMBEDDING_DIMENSIONS,
)

logger = logging.getLogger(__name__)

CHECK_SIZE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(k|m|million|thousand)?")

WEIGHTED_ENTITY_TYPES = (EntityType.SECTOR, EntityType.STAGE, EntityType.GEO)


def parse_check_size(value: str) -> Optional[float]:
    """
    Parse a free-text check size into a number.

    "$5M" -> 5_000_000, "$500K" -> 500_000, "10 thousand" -> 10_000.
    Returns None when the string carries no number.
    """
    if not value:
        return None

    cleaned = re.sub(r"[$,]", "", value).lower()
    match = CHECK_SIZE_PATTERN.search(cleaned)
    if not match:
        return None

    number = float(match.group(1))
    suffix = match.group(2)

    if suffix in ("k", "thousand"):
        number *= 1_000
    elif suffix in ("m", "million"):
        number *= 1_000_000

    return number


def normalize_embedding(payload: Any) -> Optional[List[float]]:
    """
    Normalize a stored embedding into a fixed-length vector.

    Storage returns vectors either as a numeric array or as the JSON text of
    one. Anything that does not decode to exactly EMBEDDING_DIMENSIONS finite
    numbers is treated as absent.
    """
    if payload is None:
        return None

    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None

    if not isinstance(payload, (list, tuple)) or len(payload) != EMBEDDING_DIMENSIONS:
        return None

    vector = []
    for component in payload:
        if isinstance(component, bool) or not isinstance(component, (int, float)):
            return None
        if not math.isfinite(component):
            return None
        vector.append(float(component))

    return vector


class EntityNormalizationStage:
    """
    Stage 1: Group entities and context into ConversationSignals.
    """

    def process(
        self,
        entities: List[ConversationEntity],
        context: Optional[ConversationContext] = None,
        embedding: Any = None,
    ) -> ConversationSignals:
        """
        Normalize one conversation.

        Args:
            entities: Extracted entities for the conversation
            context: Optional rich context
            embedding: Conversation embedding payload; falls back to context.embedding

        Returns:
            ConversationSignals consumed by every later stage
        """
        context = context or ConversationContext()

        sectors = self._values_of(entities, EntityType.SECTOR)
        stages = self._values_of(entities, EntityType.STAGE)
        geos = self._values_of(entities, EntityType.GEO)
        person_names = self._values_of(entities, EntityType.PERSON_NAME)
        check_sizes = self._values_of(entities, EntityType.CHECK_SIZE)

        parsed_sizes = [
            size for size in (parse_check_size(cs) for cs in check_sizes)
            if size is not None
        ]
        min_check_size = min(parsed_sizes) if parsed_sizes else None
        max_check_size = max(parsed_sizes) if parsed_sizes else None

        product_keywords: List[str] = []
        technology_keywords: List[str] = []
        companies_mentioned: List[str] = []
        if context.domains_and_topics:
            product_keywords = list(context.domains_and_topics.product_keywords)
            technology_keywords = list(context.domains_and_topics.technology_keywords)
            companies_mentioned = list(context.domains_and_topics.companies_mentioned)

        weighted_entities = [
            WeightedTerm(value=e.value, weight=e.confidence)
            for e in entities
            if e.type in WEIGHTED_ENTITY_TYPES
        ]
        for keyword in product_keywords + technology_keywords:
            weighted_entities.append(WeightedTerm(value=keyword, weight=CONTEXT_KEYWORD_WEIGHT))

        conversation_tags = sectors + stages + geos + product_keywords + technology_keywords

        hiring_roles: List[str] = []
        investor_types: List[str] = []
        goals = context.goals_and_needs
        if goals and goals.hiring:
            hiring_roles = list(goals.hiring.roles_needed)
        if goals and goals.fundraising:
            investor_types = list(goals.fundraising.investor_types)

        target = context.target_person
        target_companies = list(companies_mentioned)
        if target and target.company:
            target_companies.insert(0, target.company)

        vector = normalize_embedding(embedding if embedding is not None else context.embedding)

        signals = ConversationSignals(
            sectors=sectors,
            stages=stages,
            geos=geos,
            person_names=person_names,
            check_sizes=check_sizes,
            min_check_size=min_check_size,
            max_check_size=max_check_size,
            weighted_entities=weighted_entities,
            conversation_tags=conversation_tags,
            search_terms=sectors + stages + conversation_tags,
            hiring_roles=hiring_roles,
            investor_types=investor_types,
            target_school=target.education if target else None,
            target_interests=list(target.personal_interests) if target else [],
            target_companies=target_companies,
            technology_keywords=technology_keywords,
            embedding=vector,
        )

        logger.debug(
            "Parsed entities: sectors=%s stages=%s geos=%s names=%s check_size=%s-%s embedding=%s",
            sectors, stages, geos, person_names, min_check_size, max_check_size,
            vector is not None,
        )
        return signals

    def _values_of(self, entities: List[ConversationEntity], entity_type: EntityType) -> List[str]:
        return [e.value for e in entities if e.type == entity_type]
