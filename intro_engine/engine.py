"""
Intro Match Engine - Main Orchestrator
======================================
Orchestrates the matching pipeline:
  Stage 1: Normalize entities → Stage 2: Contact features →
  Stages 3-5 per contact: Name match, Component scores, Aggregation →
  Stage 6: Ranking → Stage 7: LLM explanation (top candidates) → Upsert

The scoring core (stages 1-6) is synchronous and pure; only the outer
per-contact loop is parallelized. Explanation and persistence are
best-effort per candidate.
"""

import time
import logging
from typing import Optional, List, Dict, Any
from concurrent.futures import ThreadPoolExecutor

from .errors import ConversationNotFoundError
from .models.schemas import (
    Contact,
    ConversationContext,
    ConversationEntity,
    ConversationSignals,
    GenerateMatchesResult,
    MatchCandidate,
    MatchSuggestion,
)
from .models.match_config import MatchConfig, create_default_match_config
from .config.settings import MAX_WORKERS
from .stages.stage1_normalize import EntityNormalizationStage
from .stages.stage2_features import ContactFeatureStage
from .stages.stage3_names import NameMatchStage
from .stages.stage4_components import ComponentScoringStage
from .stages.stage5_aggregate import ScoreAggregationStage
from .stages.stage6_rank import RankingStage, build_reasons
from .stages.stage7_explain import ExplanationStage
from .storage.repository import MatchSuggestionRepository, ConversationStore

logger = logging.getLogger(__name__)


def _empty_stats() -> Dict[str, Any]:
    return {
        "conversations_processed": 0,
        "contacts_scored": 0,
        "matches_emitted": 0,
        "explanations_generated": 0,
        "persistence_failures": 0,
        "total_processing_time_ms": 0,
    }


class MatchingEngine:
    """
    Main matching engine that orchestrates all stages.
    """

    def __init__(
        self,
        config: Optional[MatchConfig] = None,
        repository: Optional[MatchSuggestionRepository] = None,
        store: Optional[ConversationStore] = None,
        explainer: Optional[ExplanationStage] = None,
        llm_api_key: Optional[str] = None,
        llm_provider: Optional[str] = None,
    ):
        """
        Initialize the matching engine.

        Args:
            config: Match configuration (uses production presets if not provided)
            repository: Where suggestions are upserted
            store: Conversation and contact snapshots for generate_matches()
            explainer: Explanation stage (built from LLM settings if not provided)
            llm_api_key: API key for the LLM provider
            llm_provider: "openai" or "openrouter"
        """
        self.config = config or create_default_match_config()
        self.repository = repository or MatchSuggestionRepository()
        self.store = store or ConversationStore()

        # Initialize stages
        self.stage1 = EntityNormalizationStage()
        self.stage2 = ContactFeatureStage()
        self.stage3 = NameMatchStage()
        self.stage4 = ComponentScoringStage()
        self.stage5 = ScoreAggregationStage(self.config)
        self.stage6 = RankingStage(self.config)
        self.stage7 = explainer or ExplanationStage(api_key=llm_api_key, provider=llm_provider)

        # Track statistics
        self.stats = _empty_stats()

    def score_contacts(
        self,
        entities: List[ConversationEntity],
        contacts: List[Contact],
        context: Optional[ConversationContext] = None,
        conversation_embedding: Any = None,
        max_workers: Optional[int] = None,
    ) -> List[MatchCandidate]:
        """
        Rank contacts against one conversation. No I/O.

        Args:
            entities: Extracted conversation entities
            contacts: Contact snapshot to score
            context: Optional rich conversation context
            conversation_embedding: Vector or JSON-encoded vector
            max_workers: Parallel workers for per-contact scoring

        Returns:
            Ranked MatchCandidates (1+ stars, top N)
        """
        _, ranked = self._run_core(entities, contacts, context, conversation_embedding, max_workers)
        return ranked

    def generate_matches(
        self,
        conversation_id: str,
        entities: Optional[List[ConversationEntity]] = None,
        contacts: Optional[List[Contact]] = None,
        context: Optional[ConversationContext] = None,
        conversation_embedding: Any = None,
        transcript: Optional[str] = None,
        max_workers: Optional[int] = None,
    ) -> GenerateMatchesResult:
        """
        Score, explain and persist matches for one conversation.

        Inputs not passed in are loaded from the conversation store.

        Raises:
            ConversationNotFoundError: no entities were passed and the
                conversation is not in the store
        """
        start_time = time.time()
        self.stats["conversations_processed"] += 1

        if entities is None:
            snapshot = self.store.get_conversation(conversation_id)
            if snapshot is None:
                raise ConversationNotFoundError(conversation_id)
            entities = snapshot.entities
            context = context or snapshot.context
            transcript = transcript or snapshot.transcript

        if contacts is None:
            contacts = self.store.list_contacts()

        logger.info(
            "Generating matches for conversation %s (%d entities, %d contacts)",
            conversation_id, len(entities), len(contacts),
        )

        signals, ranked = self._run_core(
            entities, contacts, context, conversation_embedding, max_workers
        )

        if not ranked:
            logger.info("No matches met the minimum score for conversation %s", conversation_id)

        contacts_by_id = {c.id: c for c in contacts}
        explanations = self._explain(ranked, contacts_by_id, signals, transcript)

        saved: List[MatchSuggestion] = []
        failures = 0
        for candidate in ranked:
            suggestion = self._to_suggestion(
                conversation_id, candidate, explanations.get(candidate.contact_id)
            )
            try:
                saved.append(self.repository.upsert(suggestion))
            except Exception:
                failures += 1
                logger.exception("Error upserting match for contact %s", candidate.contact_id)

        self.stats["persistence_failures"] += failures
        total_time = (time.time() - start_time) * 1000

        logger.info(
            "Matches saved: %d (failures: %d, explained: %d) in %.1fms",
            len(saved), failures, len(explanations), total_time,
        )

        return GenerateMatchesResult(
            conversation_id=conversation_id,
            contacts_scored=len(contacts),
            matches=saved,
            explained=len(explanations),
            persistence_failures=failures,
            processing_time_ms=round(total_time, 2),
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get engine statistics"""
        stats = self.stats.copy()
        if stats["contacts_scored"] > 0:
            stats["match_rate"] = round(
                stats["matches_emitted"] / stats["contacts_scored"] * 100, 1
            )
        if stats["conversations_processed"] > 0:
            stats["avg_processing_time_ms"] = round(
                stats["total_processing_time_ms"] / stats["conversations_processed"], 2
            )
        return stats

    def reset_stats(self):
        """Reset engine statistics"""
        self.stats = _empty_stats()

    def update_config(self, new_config: MatchConfig):
        """Update the match configuration and reinitialize stages"""
        self.config = new_config
        self.stage5 = ScoreAggregationStage(new_config)
        self.stage6 = RankingStage(new_config)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _run_core(
        self,
        entities: List[ConversationEntity],
        contacts: List[Contact],
        context: Optional[ConversationContext],
        conversation_embedding: Any,
        max_workers: Optional[int],
    ):
        start_time = time.time()

        # =====================================================================
        # STAGE 1: Entity Normalization
        # =====================================================================
        signals = self.stage1.process(entities, context, conversation_embedding)

        if not entities or not contacts:
            logger.info("Nothing to score (entities=%d, contacts=%d)", len(entities), len(contacts))
            return signals, []

        # =====================================================================
        # STAGES 2-5: Per-contact scoring
        # =====================================================================
        workers = max_workers if max_workers is not None else MAX_WORKERS

        def score_one(contact: Contact) -> MatchCandidate:
            return self._score_contact(signals, contact)

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                candidates = list(executor.map(score_one, contacts))
        else:
            candidates = [score_one(contact) for contact in contacts]

        # =====================================================================
        # STAGE 6: Ranking
        # =====================================================================
        ranked = self.stage6.process(candidates)

        for candidate in ranked:
            logger.info(
                "MATCH: %s (%d stars, raw: %.3f, conf: %.2f)",
                candidate.contact_name, candidate.star_score, candidate.raw_score,
                candidate.confidence_scores.get("overall", 0.0),
            )

        self.stats["contacts_scored"] += len(contacts)
        self.stats["matches_emitted"] += len(ranked)
        self.stats["total_processing_time_ms"] += (time.time() - start_time) * 1000

        return signals, ranked

    def _score_contact(self, signals: ConversationSignals, contact: Contact) -> MatchCandidate:
        """Stages 2-5 for one contact"""
        features = self.stage2.build(contact)
        name_match = self.stage3.process(signals.person_names, contact)
        components = self.stage4.process(signals, features)
        aggregate = self.stage5.process(components, features, name_match, signals.has_embedding)

        return MatchCandidate(
            contact_id=contact.id,
            contact_name=contact.name,
            star_score=aggregate.star_score,
            raw_score=aggregate.raw_score,
            reasons=build_reasons(contact, name_match, components.evidence),
            score_breakdown=self.stage5.build_breakdown(components, aggregate, name_match),
            confidence_scores=self.stage5.confidence_scores(
                components, features, signals, aggregate, name_match
            ),
            name_match=name_match.match,
            name_match_score=name_match.score,
            name_match_type=name_match.type,
        )

    def _explain(
        self,
        ranked: List[MatchCandidate],
        contacts_by_id: Dict[str, Contact],
        signals: ConversationSignals,
        transcript: Optional[str],
    ) -> Dict[str, str]:
        """Stage 7 for the top candidates with enough stars"""
        settings = self.config.explanations
        if not settings.enabled or not self.stage7.enabled:
            return {}

        to_explain = [c for c in ranked if c.star_score >= settings.min_stars][:settings.top_n]
        logger.info("Generating explanations for %d matches", len(to_explain))

        explanations = {}
        for candidate in to_explain:
            explanation = self.stage7.process(
                candidate, contacts_by_id[candidate.contact_id], signals, transcript
            )
            if explanation:
                explanations[candidate.contact_id] = explanation

        self.stats["explanations_generated"] += len(explanations)
        return explanations

    def _to_suggestion(
        self,
        conversation_id: str,
        candidate: MatchCandidate,
        explanation: Optional[str],
    ) -> MatchSuggestion:
        return MatchSuggestion(
            conversation_id=conversation_id,
            contact_id=candidate.contact_id,
            contact_name=candidate.contact_name,
            score=candidate.star_score,
            reasons=list(candidate.reasons),
            justification=candidate.justification,
            score_breakdown=candidate.score_breakdown,
            confidence_scores=candidate.confidence_scores,
            match_version=self.config.match_version,
            ai_explanation=explanation,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def create_engine(
    max_results: Optional[int] = None,
    explain_top_n: Optional[int] = None,
    llm_api_key: Optional[str] = None,
) -> MatchingEngine:
    """
    Factory function to create a MatchingEngine with common settings.

    Args:
        max_results: Cap on returned matches
        explain_top_n: How many top matches get an LLM explanation
        llm_api_key: API key for the LLM provider

    Returns:
        Configured MatchingEngine instance
    """
    config = create_default_match_config(
        max_results=max_results,
        explain_top_n=explain_top_n,
    )
    return MatchingEngine(config=config, llm_api_key=llm_api_key)


def quick_score(
    entities: List[Dict[str, Any]],
    contacts: List[Dict[str, Any]],
    context: Optional[Dict[str, Any]] = None,
) -> List[MatchCandidate]:
    """
    Quick scoring from plain dictionaries, without persistence or LLM calls.

    Returns:
        Ranked MatchCandidates
    """
    engine = MatchingEngine()
    return engine.score_contacts(
        entities=[ConversationEntity(**e) for e in entities],
        contacts=[Contact(**c) for c in contacts],
        context=ConversationContext(**context) if context else None,
    )
