import pytest

from intro_engine.config.settings import COMPONENTS, WEIGHTS_WITH_EMBEDDING, WEIGHTS_WITHOUT_EMBEDDING
from intro_engine.evaluation.metrics import ConversationLabels
from intro_engine.evaluation.tuning import candidate_weights, grid_search, rank_suggestions, rescore
from intro_engine.models.match_config import ScoringWeights
from intro_engine.models.schemas import MatchSuggestion

from conftest import make_contact, make_entity


def row(conversation_id, contact_id, **scores):
    breakdown = {name: 0.0 for name in COMPONENTS}
    breakdown.update(scores)
    breakdown["_available"] = {name: True for name in COMPONENTS}
    return MatchSuggestion(
        conversation_id=conversation_id,
        contact_id=contact_id,
        score=1,
        justification="x",
        score_breakdown=breakdown,
    )


WITH_EMBEDDING = ScoringWeights(**WEIGHTS_WITH_EMBEDDING)
WITHOUT_EMBEDDING = ScoringWeights(**WEIGHTS_WITHOUT_EMBEDDING)


class TestRescore:
    def test_agrees_with_live_aggregation(self, engine, fintech_angel, angel_context):
        match = engine.score_contacts(
            [make_entity("sector", "fintech", 0.9)], [fintech_angel], angel_context
        )[0]
        assert rescore(match.score_breakdown, WITHOUT_EMBEDDING) == pytest.approx(match.raw_score)

    def test_name_boost_carried_over(self, engine):
        match = engine.score_contacts(
            [make_entity("person_name", "Bob Smith")], [make_contact("rs", name="Robert Smith")]
        )[0]
        assert rescore(match.score_breakdown, WITHOUT_EMBEDDING) == pytest.approx(0.27)

    def test_unavailable_components_drop_out(self):
        breakdown = {
            "geo_match": 1.0,
            "embedding": 0.9,
            "_available": {name: name == "geo_match" for name in COMPONENTS},
        }
        assert rescore(breakdown, WITH_EMBEDDING) == pytest.approx(1.0)

    def test_missing_availability_counts_everything(self):
        assert rescore({"geo_match": 1.0}, WITH_EMBEDDING) == pytest.approx(0.05)

    def test_clamped(self):
        breakdown = {name: 1.0 for name in COMPONENTS}
        breakdown["name_match"] = 1.0
        assert rescore(breakdown, WITHOUT_EMBEDDING) == 1.0


class TestRankSuggestions:
    def test_groups_and_orders(self):
        rows = [
            row("c1", "low", geo_match=0.1),
            row("c1", "high", tag_overlap=1.0),
            row("c2", "only"),
        ]
        assert rank_suggestions(rows, WITH_EMBEDDING) == {"c1": ["high", "low"], "c2": ["only"]}


class TestCandidateWeights:
    def test_vectors_fill_the_budget(self):
        vectors = list(candidate_weights([0.1, 0.2, 0.3]))
        assert len(vectors) == 27
        for weights in vectors:
            assert sum(weights.model_dump().values()) == pytest.approx(1.0)

    def test_oversized_combinations_skipped(self):
        vectors = list(candidate_weights([0.3, 0.4]))
        assert len(vectors) == 1
        assert vectors[0].embedding == 0.3


class TestGridSearch:
    def test_finds_better_weights(self):
        rows = [row("c1", "neg", embedding=1.0), row("c1", "pos", tag_overlap=1.0)]
        labels = [ConversationLabels(conversation_id="c1", positive_contact_ids=["pos"])]

        result = grid_search(rows, labels, steps=[0.1, 0.2, 0.3])

        assert result.baseline_mrr == 0.5
        assert result.mrr == 1.0
        assert result.improved
        assert result.trials == 27
        assert result.weights.tag_overlap > result.weights.embedding
        assert result.precision_at_5 == 1.0

    def test_keeps_baseline_when_nothing_wins(self):
        rows = [row("c1", "pos", embedding=1.0, tag_overlap=1.0), row("c1", "neg")]
        labels = [ConversationLabels(conversation_id="c1", positive_contact_ids=["pos"])]

        result = grid_search(rows, labels, steps=[0.1, 0.2])

        assert not result.improved
        assert result.weights == WITH_EMBEDDING
        assert result.mrr == result.baseline_mrr == 1.0

    def test_conversations_without_positives_ignored(self):
        rows = [row("c1", "pos", tag_overlap=1.0), row("c2", "neg", embedding=1.0)]
        labels = [
            ConversationLabels(conversation_id="c1", positive_contact_ids=["pos"]),
            ConversationLabels(conversation_id="c2", negative_contact_ids=["neg"]),
        ]

        result = grid_search(rows, labels, steps=[0.1])

        assert result.conversations == 1
        assert result.suggestions == 1
        assert result.baseline_mrr == 1.0
