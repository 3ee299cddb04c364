from intro_engine.models.schemas import MatchCandidate, NameMatchResult, NameMatchType
from intro_engine.stages.stage6_rank import build_reasons, rank_candidates

from conftest import make_contact


def candidate(contact_id, stars, raw):
    return MatchCandidate(
        contact_id=contact_id, contact_name=contact_id, star_score=stars, raw_score=raw
    )


class TestRankCandidates:
    def test_sorts_by_stars_then_raw(self):
        ranked = rank_candidates([
            candidate("a", 1, 0.19),
            candidate("b", 3, 0.41),
            candidate("c", 2, 0.30),
            candidate("d", 3, 0.80),
        ], max_results=20)
        assert [c.contact_id for c in ranked] == ["d", "b", "c", "a"]

    def test_drops_zero_stars(self):
        ranked = rank_candidates([candidate("a", 0, 0.01), candidate("b", 1, 0.06)], 20)
        assert [c.contact_id for c in ranked] == ["b"]

    def test_truncates(self):
        many = [candidate(str(i), 1, 0.05 + i / 1000) for i in range(30)]
        ranked = rank_candidates(many, max_results=20)
        assert len(ranked) == 20
        assert ranked[0].contact_id == "29"

    def test_ties_keep_input_order(self):
        ranked = rank_candidates([candidate("x", 2, 0.3), candidate("y", 2, 0.3)], 20)
        assert [c.contact_id for c in ranked] == ["x", "y"]


class TestBuildReasons:
    def test_exact_name_prefix(self):
        contact = make_contact(name="Roy Bahat")
        name = NameMatchResult(match=True, score=0.95, type=NameMatchType.CONTAINS)
        assert build_reasons(contact, name, {}) == ['Name mentioned: "Roy Bahat"']

    def test_similar_name_with_percent(self):
        contact = make_contact(name="Robert Smith")
        name = NameMatchResult(match=True, score=0.9, type=NameMatchType.FUZZY_BOTH)
        assert build_reasons(contact, name, {}) == ['Similar name: "Robert Smith" (90%)']

    def test_fixed_order(self):
        contact = make_contact(name="Jane Doe")
        name = NameMatchResult(match=True, score=1.0, type=NameMatchType.EXACT)
        evidence = {
            "expertise": ["Payments"],
            "portfolio": ["Stripe"],
            "interests": ["chess"],
            "education": ["MIT"],
            "location": ["Boston, MA"],
            "check_size": ["$100K-$500K"],
            "investor_types": ["Angel", "VC"],
            "tags": ["fintech", "seed"],
        }
        assert build_reasons(contact, name, evidence) == [
            'Name mentioned: "Jane Doe"',
            "Matches: fintech, seed",
            "Angel investor",
            "VC investor",
            "Check size: $100K-$500K",
            "Location: Boston, MA",
            "Same school: MIT",
            "Shared interests: chess",
            "Portfolio overlap: Stripe",
            "Expertise: Payments",
        ]

    def test_no_evidence(self):
        assert build_reasons(make_contact(), NameMatchResult(), {}) == []


class TestJustification:
    def test_joins_reasons(self):
        c = MatchCandidate(
            contact_id="1", contact_name="Jane", star_score=2, raw_score=0.3,
            reasons=["Matches: fintech", "Angel investor"],
        )
        assert c.justification == "Jane: Matches: fintech; Angel investor"

    def test_fallback(self):
        c = candidate("Jane", 1, 0.1)
        assert c.justification == "Jane is a potential match."
