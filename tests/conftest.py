"""Shared fixtures and factories for the matching engine tests."""

import pytest

from intro_engine.engine import MatchingEngine
from intro_engine.models.match_config import create_default_match_config
from intro_engine.models.schemas import Contact, ConversationContext, ConversationEntity
from intro_engine.stages.stage7_explain import ExplanationStage
from intro_engine.storage.repository import MatchSuggestionRepository, ConversationStore


def make_entity(entity_type, value, confidence=0.5):
    return ConversationEntity(type=entity_type, value=value, confidence=confidence)


def make_contact(contact_id="c-1", name="Jane Doe", **fields):
    return Contact(id=contact_id, name=name, **fields)


def make_context(**fields):
    return ConversationContext(**fields)


def unit_vector(index, dims=1536):
    vec = [0.0] * dims
    vec[index] = 1.0
    return vec


@pytest.fixture
def offline_explainer():
    """Explanation stage with no client, so no LLM is ever called."""
    explainer = ExplanationStage(api_key="unused")
    explainer.client = None
    return explainer


@pytest.fixture
def engine(offline_explainer):
    return MatchingEngine(
        config=create_default_match_config(),
        repository=MatchSuggestionRepository(),
        store=ConversationStore(),
        explainer=offline_explainer,
    )


@pytest.fixture
def fintech_angel():
    return make_contact(
        contact_id="angel-1",
        name="Jane Doe",
        is_investor=True,
        contact_type=["Angel"],
        theses=[{"sectors": ["FinTech"]}],
    )


@pytest.fixture
def angel_context():
    return make_context(goals_and_needs={"fundraising": {"investor_types": ["Angel"]}})
