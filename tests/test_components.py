import math

import pytest

from intro_engine.models.schemas import ConversationSignals, WeightedTerm
from intro_engine.stages.stage2_features import ContactFeatureStage
from intro_engine.stages.stage4_components import (
    ComponentScoringStage,
    check_size_fit,
    cosine_similarity,
    embedding_score,
    format_check_range,
    geo_match_score,
    jaccard_similarity,
    matches_any,
    personal_affinity_score,
    relationship_score,
    role_match_score,
    semantic_score,
    weighted_jaccard_similarity,
)

from conftest import make_contact, unit_vector


class TestSimilarityHelpers:
    def test_jaccard_empty_sets(self):
        assert jaccard_similarity([], []) == 0

    def test_jaccard_identical(self):
        assert jaccard_similarity(["a", "B"], ["b", "a"]) == 1.0

    def test_jaccard_disjoint(self):
        assert jaccard_similarity(["a"], ["b"]) == 0.0

    def test_jaccard_partial(self):
        assert jaccard_similarity(["a", "b"], ["b", "c"]) == pytest.approx(1 / 3)

    def test_weighted_jaccard_denominator_uses_tag_count(self):
        weighted = [WeightedTerm(value="fintech", weight=0.9)]
        score = weighted_jaccard_similarity(weighted, ["FinTech", "Angel", "investor"])
        assert score == pytest.approx(0.3)

    def test_weighted_jaccard_denominator_uses_weight_sum(self):
        weighted = [
            WeightedTerm(value="fintech", weight=1.0),
            WeightedTerm(value="seed", weight=1.0),
        ]
        assert weighted_jaccard_similarity(weighted, ["fintech"]) == pytest.approx(0.5)

    def test_weighted_jaccard_empty(self):
        assert weighted_jaccard_similarity([], ["a"]) == 0.0
        assert weighted_jaccard_similarity([WeightedTerm(value="a", weight=1)], []) == 0.0

    def test_cosine(self):
        assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
        assert cosine_similarity([0, 0], [1, 1]) == 0.0

    def test_matches_any_either_direction(self):
        assert matches_any("New York", ["New York, NY"])
        assert matches_any("San Francisco Bay Area", ["san francisco"])
        assert not matches_any("London", ["Paris"])
        assert not matches_any("", ["anything"])


class TestEmbeddingScore:
    def test_takes_best_of_bio_and_thesis(self):
        conv = unit_vector(0)
        assert embedding_score(conv, unit_vector(1), unit_vector(0)) == pytest.approx(1.0)

    def test_negative_similarity_clamped(self):
        conv = unit_vector(0)
        opposite = [-x for x in conv]
        assert embedding_score(conv, opposite, None) == 0.0

    def test_absent_side_scores_zero(self):
        assert embedding_score(None, unit_vector(0), None) == 0.0
        assert embedding_score(unit_vector(0), None, None) == 0.0

    def test_overflowing_vectors_score_zero(self):
        huge = [1e200] * 1536
        assert embedding_score(huge, huge, None) == 0.0


class TestSemanticScore:
    def test_fraction_of_terms_found(self):
        text = "seed investor in fintech"
        assert semantic_score(["fintech", "biotech"], text) == 0.5

    def test_no_terms(self):
        assert semantic_score([], "anything") == 0.0


class TestRoleMatchScore:
    def test_hiring_role_in_title(self):
        score, matched = role_match_score("Fractional CTO", ["cto"], [], [])
        assert score == 1.0
        assert matched == []

    def test_investor_type_overlap(self):
        score, matched = role_match_score(None, [], ["Angel"], ["angel investors"])
        assert score == 0.8
        assert matched == ["Angel"]

    def test_title_match_beats_investor_type(self):
        score, _ = role_match_score("CTO", ["CTO"], ["Angel"], ["Angel"])
        assert score == 1.0

    def test_no_match(self):
        assert role_match_score("Designer", ["CTO"], ["LP"], ["Angel"]) == (0.0, [])


class TestGeoAndRelationship:
    def test_geo_substring(self):
        assert geo_match_score(["New York"], "New York, NY") == 1.0

    def test_geo_missing_location(self):
        assert geo_match_score(["New York"], None) == 0.0

    def test_relationship_default_is_half(self):
        assert relationship_score(None) == 0.5
        assert relationship_score(80) == 0.8


class TestCheckSizeFit:
    def test_full_containment(self):
        assert check_size_fit(500_000, 1_000_000, 250_000, 2_000_000) == 1.0

    def test_equal_ranges(self):
        assert check_size_fit(1_000_000, 2_000_000, 1_000_000, 2_000_000) == 1.0

    def test_point_value_inside_range(self):
        assert check_size_fit(500_000, None, 100_000, 1_000_000) == 1.0

    def test_partial_overlap(self):
        # overlap 500K of a 1M raise
        assert check_size_fit(1_000_000, 2_000_000, 500_000, 1_500_000) == pytest.approx(0.75)

    def test_no_overlap_capped(self):
        fit = check_size_fit(5_000_000, 10_000_000, 25_000, 100_000)
        assert 0 < fit <= 0.3
        assert fit == pytest.approx(min(math.exp(-3 * 4_900_000 / 10_000_000), 0.3))

    def test_near_miss_still_capped(self):
        assert check_size_fit(1_000_000, 1_000_000, 900_000, 990_000) == 0.3

    def test_either_side_absent(self):
        assert check_size_fit(None, None, 100, 200) == 0
        assert check_size_fit(100, 200, None, None) == 0

    def test_format_range(self):
        assert format_check_range(250_000, 1_000_000) == "$250K-$1M"
        assert format_check_range(None, 2_500_000) == "$2.5M"


class TestPersonalAffinity:
    def _score(self, contact, **signal_fields):
        features = ContactFeatureStage().build(contact)
        return personal_affinity_score(ConversationSignals(**signal_fields), features)

    def test_school(self):
        contact = make_contact(education=["Stanford University"])
        score, evidence = self._score(contact, target_school="Stanford")
        assert score == pytest.approx(0.4)
        assert evidence["education"] == ["Stanford University"]

    def test_interests_capped(self):
        contact = make_contact(personal_interests=["chess", "sailing", "golf"])
        score, evidence = self._score(contact, target_interests=["Chess", "Sailing", "Golf"])
        assert score == pytest.approx(0.4)
        assert evidence["interests"] == ["Chess", "Sailing", "Golf"]

    def test_portfolio(self):
        contact = make_contact(portfolio_companies=["Stripe", "Plaid"])
        score, evidence = self._score(contact, target_companies=["stripe"])
        assert score == pytest.approx(0.3)
        assert evidence["portfolio"] == ["Stripe"]

    def test_expertise(self):
        contact = make_contact(expertise_areas=["Machine Learning", "Payments"])
        score, _ = self._score(contact, technology_keywords=["machine learning"])
        assert score == pytest.approx(0.15)

    def test_total_capped_at_one(self):
        contact = make_contact(
            education=[{"school": "MIT"}],
            personal_interests=["chess", "golf"],
            portfolio_companies=["Stripe"],
            expertise_areas=["ml", "payments"],
        )
        score, _ = self._score(
            contact,
            target_school="MIT",
            target_interests=["chess", "golf"],
            target_companies=["Stripe"],
            technology_keywords=["ml", "payments"],
        )
        assert score == 1.0

    def test_nothing_shared(self):
        score, evidence = self._score(make_contact(), target_school="MIT")
        assert score == 0.0
        assert evidence == {}


class TestComponentScoringStage:
    def test_collects_evidence(self):
        contact = make_contact(
            is_investor=True,
            contact_type=["Angel"],
            location="New York, NY",
            check_size_min=250_000,
            check_size_max=1_000_000,
            theses=[{"sectors": ["FinTech"]}],
        )
        signals = ConversationSignals(
            sectors=["fintech"],
            geos=["New York"],
            weighted_entities=[WeightedTerm(value="fintech", weight=0.9)],
            conversation_tags=["fintech", "New York"],
            search_terms=["fintech", "fintech", "New York"],
            investor_types=["Angel"],
            min_check_size=500_000,
            max_check_size=500_000,
        )
        scores = ComponentScoringStage().process(signals, ContactFeatureStage().build(contact))

        assert scores.tag_overlap > 0.1
        assert scores.role_match == 0.8
        assert scores.geo_match == 1.0
        assert scores.check_size == 1.0
        assert scores.evidence["tags"] == ["fintech"]
        assert scores.evidence["investor_types"] == ["Angel"]
        assert scores.evidence["check_size"] == ["$250K-$1M"]
        assert scores.evidence["location"] == ["New York, NY"]

    def test_non_investor_has_no_check_size_score(self):
        contact = make_contact(check_size_min=100, check_size_max=200)
        signals = ConversationSignals(min_check_size=150, max_check_size=150)
        scores = ComponentScoringStage().process(signals, ContactFeatureStage().build(contact))
        assert scores.check_size == 0.0
        assert "check_size" not in scores.evidence
