"""
Configuration settings for the Intro Match Engine
"""

from typing import Dict, List
import os

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# LLM CONFIGURATION (explanations for top matches)
# =============================================================================

LLM_CONFIG = {
    "provider": os.getenv("LLM_PROVIDER", "openai"),  # openai, openrouter
    "model": os.getenv("LLM_MODEL", "gpt-4o-mini"),
    "api_key": os.getenv("OPENAI_API_KEY", "") or os.getenv("OPENROUTER_API_KEY", ""),
    "base_url": os.getenv("LLM_BASE_URL", "https://openrouter.ai/api/v1"),
    "max_tokens": 100,
    "temperature": 0.7,
    "site_url": os.getenv("OPENROUTER_SITE_URL", "http://localhost:8000"),
    "app_name": os.getenv("OPENROUTER_APP_NAME", "Intro Match Engine"),
}

# =============================================================================
# RUNTIME
# =============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
MAX_WORKERS = int(os.getenv("MATCH_MAX_WORKERS", "1"))

# =============================================================================
# SCORING WEIGHTS
# =============================================================================

WEIGHTS_WITH_EMBEDDING = {
    "embedding": 0.25,
    "semantic": 0.10,
    "tag_overlap": 0.20,
    "role_match": 0.10,
    "geo_match": 0.05,
    "relationship": 0.10,
    "personal_affinity": 0.15,
    "check_size": 0.05,
}

WEIGHTS_WITHOUT_EMBEDDING = {
    "semantic": 0.15,
    "tag_overlap": 0.25,
    "role_match": 0.15,
    "geo_match": 0.05,
    "relationship": 0.15,
    "personal_affinity": 0.20,
    "check_size": 0.05,
}

COMPONENTS = [
    "embedding",
    "semantic",
    "tag_overlap",
    "role_match",
    "geo_match",
    "relationship",
    "personal_affinity",
    "check_size",
]

# =============================================================================
# THRESHOLDS & LIMITS
# =============================================================================

STAR_THRESHOLDS = {
    "three_star": 0.40,
    "two_star": 0.20,
    "one_star": 0.05,
}

NAME_MATCH_BOOST = 0.3
MAX_MATCHES = 20
EXPLAIN_TOP_N = 5
EXPLAIN_MIN_STARS = 2
TAG_REASON_THRESHOLD = 0.1

MATCH_VERSION = "v2.0-multisignal"

EMBEDDING_DIMENSIONS = 1536
DEFAULT_ENTITY_CONFIDENCE = 0.5
CONTEXT_KEYWORD_WEIGHT = 0.7
RELATIONSHIP_UNKNOWN = 50

# =============================================================================
# CONTACT TAG VOCABULARY
# =============================================================================

INVESTMENT_TERMS: List[str] = [
    "venture",
    "capital",
    "pre-seed",
    "seed",
    "series a",
    "series b",
    "series c",
    "growth",
    "biotech",
    "fintech",
    "healthtech",
    "edtech",
    "proptech",
    "saas",
    "ai",
    "ml",
    "deep tech",
    "climate",
    "enterprise",
    "b2b",
    "b2c",
    "consumer",
    "healthcare",
    "life sciences",
]

# =============================================================================
# NICKNAMES (looked up in both directions)
# =============================================================================

NICKNAMES: Dict[str, List[str]] = {
    "matt": ["matthew", "mat"],
    "matthew": ["matt", "mat"],
    "rob": ["robert", "bob", "bobby"],
    "robert": ["rob", "bob", "bobby"],
    "bob": ["robert", "rob", "bobby"],
    "mike": ["michael", "mick"],
    "michael": ["mike", "mick"],
    "jim": ["james", "jimmy"],
    "james": ["jim", "jimmy"],
    "bill": ["william", "will", "billy"],
    "william": ["bill", "will", "billy"],
    "tom": ["thomas", "tommy"],
    "thomas": ["tom", "tommy"],
    "joe": ["joseph", "joey"],
    "joseph": ["joe", "joey"],
    "dan": ["daniel", "danny"],
    "daniel": ["dan", "danny"],
    "chris": ["christopher", "kristopher"],
    "christopher": ["chris"],
    "alex": ["alexander", "alexandra"],
    "alexander": ["alex"],
    "sam": ["samuel", "samantha"],
    "samuel": ["sam"],
    "nick": ["nicholas", "nicolas"],
    "nicholas": ["nick", "nicolas"],
    "steve": ["steven", "stephen"],
    "steven": ["steve", "stephen"],
    "stephen": ["steve", "steven"],
    "tony": ["anthony"],
    "anthony": ["tony"],
    "dave": ["david"],
    "david": ["dave"],
    "ed": ["edward", "eddie"],
    "edward": ["ed", "eddie"],
    "sara": ["sarah"],
    "sarah": ["sara"],
    "kate": ["katherine", "catherine", "kathy"],
    "katherine": ["kate", "kathy", "katie"],
    "liz": ["elizabeth", "beth", "lizzy"],
    "elizabeth": ["liz", "beth", "lizzy"],
    "jen": ["jennifer", "jenny"],
    "jennifer": ["jen", "jenny"],
}
