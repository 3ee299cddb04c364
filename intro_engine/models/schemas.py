"""
Pydantic schemas for the Intro Match Engine
"""

from enum import Enum
from typing import List, Dict, Optional, Any
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
import uuid

from ..config.settings import DEFAULT_ENTITY_CONFIDENCE, MATCH_VERSION


# =============================================================================
# ENUMS
# =============================================================================

class EntityType(str, Enum):
    """Kind of signal extracted from a conversation"""
    SECTOR = "sector"
    STAGE = "stage"
    GEO = "geo"
    CHECK_SIZE = "check_size"
    PERSON_NAME = "person_name"
    PERSONA = "persona"


class NameMatchType(str, Enum):
    """Which rule of the name-matching cascade fired"""
    EXACT = "exact"
    CONTAINS = "contains"
    FIRST_ONLY = "first-only"
    FIRST_NICKNAME = "first-nickname"
    FUZZY_BOTH = "fuzzy-both"
    LAST_ONLY = "last-only"
    LEVENSHTEIN = "levenshtein"
    NONE = "none"


class SuggestionStatus(str, Enum):
    """Lifecycle of a persisted suggestion"""
    PENDING = "pending"
    PROMISED = "promised"
    INTRO_MADE = "intro_made"
    DISMISSED = "dismissed"
    MAYBE = "maybe"


def _list_or_empty(value: Any) -> Any:
    # storage hands back NULL for empty array columns
    return [] if value is None else value


# =============================================================================
# INPUT SCHEMAS - CONVERSATION
# =============================================================================

class ConversationEntity(BaseModel):
    """A typed, confidence-scored signal extracted from a conversation"""
    type: EntityType = Field(alias="entity_type")
    value: str
    confidence: float = DEFAULT_ENTITY_CONFIDENCE

    class Config:
        frozen = True
        populate_by_name = True

    @field_validator("confidence", mode="before")
    @classmethod
    def parse_confidence(cls, value: Any) -> float:
        if value is None or isinstance(value, bool):
            return DEFAULT_ENTITY_CONFIDENCE
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            return DEFAULT_ENTITY_CONFIDENCE
        if parsed != parsed:  # NaN
            return DEFAULT_ENTITY_CONFIDENCE
        return parsed


class TargetPerson(BaseModel):
    """The person the conversation is about"""
    name: Optional[str] = None
    company: Optional[str] = None
    education: Optional[str] = None
    personal_interests: List[str] = Field(default_factory=list)

    @field_validator("personal_interests", mode="before")
    @classmethod
    def none_as_empty_list(cls, value: Any) -> Any:
        return _list_or_empty(value)


class MatchingIntent(BaseModel):
    """What kind of contacts the owner wants surfaced"""
    what_kind_of_contacts_to_find: List[str] = Field(default_factory=list)
    hard_constraints: List[str] = Field(default_factory=list)
    soft_preferences: List[str] = Field(default_factory=list)
    urgency: Optional[str] = None


class HiringNeeds(BaseModel):
    is_relevant: bool = False
    roles_needed: List[str] = Field(default_factory=list)
    seniority: List[str] = Field(default_factory=list)

    @field_validator("roles_needed", "seniority", mode="before")
    @classmethod
    def none_as_empty_list(cls, value: Any) -> Any:
        return _list_or_empty(value)


class FundraisingNeeds(BaseModel):
    is_relevant: bool = False
    stage: Optional[str] = None
    amount_range: Optional[str] = None
    investor_types: List[str] = Field(default_factory=list)

    @field_validator("investor_types", mode="before")
    @classmethod
    def none_as_empty_list(cls, value: Any) -> Any:
        return _list_or_empty(value)


class GoalsAndNeeds(BaseModel):
    hiring: Optional[HiringNeeds] = None
    fundraising: Optional[FundraisingNeeds] = None


class DomainsAndTopics(BaseModel):
    primary_industry: Optional[str] = None
    product_keywords: List[str] = Field(default_factory=list)
    technology_keywords: List[str] = Field(default_factory=list)
    companies_mentioned: List[str] = Field(default_factory=list)

    @field_validator("product_keywords", "technology_keywords", "companies_mentioned", mode="before")
    @classmethod
    def none_as_empty_list(cls, value: Any) -> Any:
        return _list_or_empty(value)


class ConversationContext(BaseModel):
    """Rich context extracted alongside the flat entity list"""
    target_person: Optional[TargetPerson] = None
    matching_intent: Optional[MatchingIntent] = None
    goals_and_needs: Optional[GoalsAndNeeds] = None
    domains_and_topics: Optional[DomainsAndTopics] = None
    # list of floats or a JSON-encoded string, normalized at ingestion
    embedding: Optional[Any] = None


# =============================================================================
# INPUT SCHEMAS - CONTACTS
# =============================================================================

class Thesis(BaseModel):
    """A contact's stored investment focus"""
    sectors: List[str] = Field(default_factory=list)
    stages: List[str] = Field(default_factory=list)
    geos: List[str] = Field(default_factory=list)

    @field_validator("sectors", "stages", "geos", mode="before")
    @classmethod
    def none_as_empty_list(cls, value: Any) -> Any:
        return _list_or_empty(value)


class Education(BaseModel):
    school: Optional[str] = None
    degree: Optional[str] = None
    field: Optional[str] = None
    year: Optional[int] = None


class Contact(BaseModel):
    """Read-only snapshot of a stored contact"""
    id: str
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    contact_type: List[str] = Field(default_factory=list)
    is_investor: bool = False
    check_size_min: Optional[float] = None
    check_size_max: Optional[float] = None
    relationship_strength: Optional[int] = None
    bio_embedding: Optional[Any] = None
    thesis_embedding: Optional[Any] = None
    investor_notes: Optional[str] = None
    education: List[Education] = Field(default_factory=list)
    personal_interests: List[str] = Field(default_factory=list)
    expertise_areas: List[str] = Field(default_factory=list)
    portfolio_companies: List[str] = Field(default_factory=list)
    theses: List[Thesis] = Field(default_factory=list)

    class Config:
        frozen = True

    @field_validator(
        "contact_type",
        "personal_interests",
        "expertise_areas",
        "portfolio_companies",
        "theses",
        mode="before",
    )
    @classmethod
    def none_as_empty_list(cls, value: Any) -> Any:
        return _list_or_empty(value)

    @field_validator("is_investor", mode="before")
    @classmethod
    def coerce_investor_flag(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("education", mode="before")
    @classmethod
    def coerce_education(cls, value: Any) -> Any:
        if value is None:
            return []
        return [{"school": e} if isinstance(e, str) else e for e in value]


# =============================================================================
# STAGE RESULT SCHEMAS
# =============================================================================

class WeightedTerm(BaseModel):
    """A conversation term carrying a confidence weight"""
    value: str
    weight: float


class ConversationSignals(BaseModel):
    """Result from Stage 1: entities and context grouped into typed signals"""
    sectors: List[str] = Field(default_factory=list)
    stages: List[str] = Field(default_factory=list)
    geos: List[str] = Field(default_factory=list)
    person_names: List[str] = Field(default_factory=list)
    check_sizes: List[str] = Field(default_factory=list)
    min_check_size: Optional[float] = None
    max_check_size: Optional[float] = None
    weighted_entities: List[WeightedTerm] = Field(default_factory=list)
    conversation_tags: List[str] = Field(default_factory=list)
    search_terms: List[str] = Field(default_factory=list)
    hiring_roles: List[str] = Field(default_factory=list)
    investor_types: List[str] = Field(default_factory=list)
    target_school: Optional[str] = None
    target_interests: List[str] = Field(default_factory=list)
    target_companies: List[str] = Field(default_factory=list)
    technology_keywords: List[str] = Field(default_factory=list)
    embedding: Optional[List[float]] = None

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None


class ContactFeatures(BaseModel):
    """Result from Stage 2: per-contact derived features"""
    contact: Contact
    tags: List[str] = Field(default_factory=list)
    text: str = ""
    bio_embedding: Optional[List[float]] = None
    thesis_embedding: Optional[List[float]] = None

    @property
    def has_embedding(self) -> bool:
        return self.bio_embedding is not None or self.thesis_embedding is not None


class NameMatchResult(BaseModel):
    """Result from Stage 3: best name match for one contact"""
    match: bool = False
    score: float = 0.0
    type: NameMatchType = NameMatchType.NONE
    mentioned_name: Optional[str] = None
    matched_name: Optional[str] = None


class ComponentScores(BaseModel):
    """Result from Stage 4: the eight component scores and their evidence"""
    embedding: float = 0.0
    semantic: float = 0.0
    tag_overlap: float = 0.0
    role_match: float = 0.0
    geo_match: float = 0.0
    relationship: float = 0.0
    personal_affinity: float = 0.0
    check_size: float = 0.0
    # reason fragments keyed by evidence kind, in evaluation order
    evidence: Dict[str, List[str]] = Field(default_factory=dict)

    def as_dict(self) -> Dict[str, float]:
        return {
            "embedding": self.embedding,
            "semantic": self.semantic,
            "tag_overlap": self.tag_overlap,
            "role_match": self.role_match,
            "geo_match": self.geo_match,
            "relationship": self.relationship,
            "personal_affinity": self.personal_affinity,
            "check_size": self.check_size,
        }


class AggregateScore(BaseModel):
    """Result from Stage 5: combined score for one contact"""
    raw_score: float
    star_score: int
    weighted_score: float
    scale: float
    available: Dict[str, bool] = Field(default_factory=dict)
    name_boost: float = 0.0


# =============================================================================
# OUTPUT SCHEMAS
# =============================================================================

class MatchCandidate(BaseModel):
    """One ranked introduction suggestion"""
    contact_id: str
    contact_name: str
    star_score: int
    raw_score: float
    reasons: List[str] = Field(default_factory=list)
    score_breakdown: Dict[str, Any] = Field(default_factory=dict)
    confidence_scores: Dict[str, float] = Field(default_factory=dict)
    name_match: bool = False
    name_match_score: float = 0.0
    name_match_type: NameMatchType = NameMatchType.NONE

    class Config:
        frozen = True

    @property
    def justification(self) -> str:
        if self.reasons:
            return f"{self.contact_name}: {'; '.join(self.reasons)}"
        return f"{self.contact_name} is a potential match."


class MatchSuggestion(BaseModel):
    """A persisted suggestion row, unique per (conversation_id, contact_id)"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    conversation_id: str
    contact_id: str
    contact_name: Optional[str] = None
    score: int
    reasons: List[str] = Field(default_factory=list)
    justification: str
    status: SuggestionStatus = SuggestionStatus.PENDING
    score_breakdown: Dict[str, Any] = Field(default_factory=dict)
    confidence_scores: Dict[str, float] = Field(default_factory=dict)
    match_version: str = MATCH_VERSION
    ai_explanation: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class GenerateMatchesResult(BaseModel):
    """Result from a full generate-and-persist run"""
    conversation_id: str
    contacts_scored: int = 0
    matches: List[MatchSuggestion] = Field(default_factory=list)
    explained: int = 0
    persistence_failures: int = 0
    processing_time_ms: float = 0


# =============================================================================
# API REQUEST SCHEMAS
# =============================================================================

class ConversationSnapshot(BaseModel):
    """Everything the engine needs to know about one conversation"""
    conversation_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: Optional[str] = None
    entities: List[ConversationEntity] = Field(default_factory=list)
    context: Optional[ConversationContext] = None
    transcript: Optional[str] = None


class ScoreRequest(BaseModel):
    """Score contacts against inline conversation data"""
    entities: List[ConversationEntity] = Field(default_factory=list)
    contacts: List[Contact] = Field(default_factory=list)
    context: Optional[ConversationContext] = None
    conversation_embedding: Optional[Any] = None
    options: Optional[Dict[str, Any]] = Field(default_factory=dict)
