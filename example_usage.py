"""
Intro Match Engine - Usage Examples
===================================
This file demonstrates how to use the matching engine
both programmatically and via the API.
"""

SAMPLE_ENTITIES = [
    {"type": "sector", "value": "fintech", "confidence": 0.9},
    {"type": "stage", "value": "seed", "confidence": 0.8},
    {"type": "geo", "value": "New York", "confidence": 0.7},
    {"type": "check_size", "value": "$500K"},
    {"type": "check_size", "value": "$1M"},
    {"type": "person_name", "value": "Bob Smith"},
]

SAMPLE_CONTEXT = {
    "target_person": {
        "name": "Dana Lee",
        "company": "Ledgerly",
        "education": "Stanford",
        "personal_interests": ["sailing", "chess"],
    },
    "goals_and_needs": {
        "fundraising": {"is_relevant": True, "stage": "seed", "investor_types": ["Angel", "VC"]},
        "hiring": {"is_relevant": True, "roles_needed": ["CTO"]},
    },
    "domains_and_topics": {
        "product_keywords": ["payments"],
        "technology_keywords": ["machine learning"],
        "companies_mentioned": ["Stripe"],
    },
}

SAMPLE_CONTACTS = [
    {
        "id": "c-1",
        "name": "Robert Smith",
        "title": "Partner",
        "company": "Hudson Ventures",
        "location": "New York, NY",
        "bio": "Seed-stage fintech investor backing payments infrastructure.",
        "contact_type": ["VC"],
        "is_investor": True,
        "check_size_min": 250_000,
        "check_size_max": 1_500_000,
        "relationship_strength": 80,
        "education": [{"school": "Stanford University", "degree": "MBA"}],
        "portfolio_companies": ["Stripe"],
        "theses": [{"sectors": ["FinTech"], "stages": ["Seed"], "geos": ["New York"]}],
    },
    {
        "id": "c-2",
        "name": "Priya Natarajan",
        "title": "Angel Investor",
        "location": "San Francisco, CA",
        "bio": "Former CTO. Angel in B2B SaaS and fintech.",
        "contact_type": ["Angel"],
        "is_investor": True,
        "check_size_min": 25_000,
        "check_size_max": 100_000,
        "personal_interests": ["Chess"],
        "expertise_areas": ["Machine Learning"],
    },
    {
        "id": "c-3",
        "name": "Alex Kim",
        "title": "Product Designer",
        "company": "Figment",
        "location": "Austin, TX",
    },
]


# =============================================================================
# EXAMPLE 1: Direct Engine Usage (Programmatic)
# =============================================================================

def example_direct_usage():
    """Use the engine directly in Python code"""
    from intro_engine.engine import MatchingEngine, create_engine
    from intro_engine.models.schemas import Contact, ConversationContext, ConversationEntity

    # Create a simple engine with default settings
    engine = MatchingEngine()

    # Or create with custom settings
    engine = create_engine(max_results=10, explain_top_n=3)

    entities = [ConversationEntity(**e) for e in SAMPLE_ENTITIES]
    contacts = [Contact(**c) for c in SAMPLE_CONTACTS]
    context = ConversationContext(**SAMPLE_CONTEXT)

    print("=" * 60)
    print("SCORING CONTACTS")
    print("=" * 60)

    candidates = engine.score_contacts(entities, contacts, context)

    for candidate in candidates:
        print(f"\n{candidate.contact_name}: {'*' * candidate.star_score} (raw {candidate.raw_score:.3f})")
        if candidate.name_match:
            print(f"  Name match: {candidate.name_match_type.value} ({candidate.name_match_score:.2f})")
        print("  Reasons:")
        for reason in candidate.reasons:
            print(f"    - {reason}")
        print("  Breakdown:")
        for component, score in candidate.score_breakdown.items():
            if component != "_available":
                print(f"    {component:<18} {score:.3f}")
        print(f"  Confidence: {candidate.confidence_scores['overall']:.2f}")

    return candidates


# =============================================================================
# EXAMPLE 2: Generate and Store Matches
# =============================================================================

def example_generate_matches():
    """Register a conversation, generate matches twice, show the upsert"""
    from intro_engine.engine import MatchingEngine
    from intro_engine.models.schemas import Contact, ConversationSnapshot

    engine = MatchingEngine()
    engine.store.save_contacts([Contact(**c) for c in SAMPLE_CONTACTS])
    engine.store.save_conversation(ConversationSnapshot(
        conversation_id="conv-1",
        title="Ledgerly seed round",
        entities=SAMPLE_ENTITIES,
        context=SAMPLE_CONTEXT,
    ))

    first = engine.generate_matches("conv-1")
    second = engine.generate_matches("conv-1")

    print(f"\nFirst run stored {len(first.matches)} suggestions")
    print(f"Second run stored {len(second.matches)} suggestions")
    print(f"Rows in repository: {engine.repository.count()}")
    for row in engine.repository.list_for_conversation("conv-1"):
        print(f"  {row.score}* {row.justification}")

    print("\nEngine stats:", engine.get_stats())


# =============================================================================
# EXAMPLE 3: Quick Score (dictionaries in, candidates out)
# =============================================================================

def example_quick_score():
    from intro_engine.engine import quick_score

    candidates = quick_score(SAMPLE_ENTITIES, SAMPLE_CONTACTS, SAMPLE_CONTEXT)
    for candidate in candidates:
        print(f"{candidate.contact_name}: {candidate.star_score} stars - {candidate.justification}")


# =============================================================================
# EXAMPLE 4: API Usage (with requests library)
# =============================================================================

def example_api_usage():
    """
    Use the REST API from another service.
    Start the server first: python main.py
    """
    import requests

    base_url = "http://localhost:8000"

    response = requests.post(f"{base_url}/api/matches/score", json={
        "entities": SAMPLE_ENTITIES,
        "contacts": SAMPLE_CONTACTS,
        "context": SAMPLE_CONTEXT,
    })
    for match in response.json()["matches"]:
        print(f"{match['contact_name']}: {match['star_score']} stars")

    requests.post(f"{base_url}/api/contacts", json=SAMPLE_CONTACTS)
    requests.post(f"{base_url}/api/conversations", json={
        "conversation_id": "conv-1",
        "entities": SAMPLE_ENTITIES,
        "context": SAMPLE_CONTEXT,
    })
    result = requests.post(f"{base_url}/api/conversations/conv-1/matches").json()
    print(f"Stored {len(result['matches'])} suggestions")


# =============================================================================
# EXAMPLE 5: Name Matching
# =============================================================================

def example_name_matching():
    from intro_engine.stages.stage3_names import fuzzy_name_match

    pairs = [
        ("John Smith", "John Smith"),
        ("Roy", "Roy E. Bahat"),
        ("Matt", "Matthew Johnson"),
        ("Rob Johnson", "Robert Johnson"),
        ("Jon Smyth", "John Smith"),
        ("Alice", "Bob Jones"),
    ]
    for mentioned, contact in pairs:
        result = fuzzy_name_match(mentioned, contact)
        print(f"{mentioned!r:>16} vs {contact!r:<20} -> {result.type.value} ({result.score:.2f})")


if __name__ == "__main__":
    example_direct_usage()
    example_generate_matches()
    example_quick_score()
    example_name_matching()
