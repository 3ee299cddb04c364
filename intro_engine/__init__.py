"""
Intro Match Engine - Multi-Signal Contact Matching
==================================================
A staged pipeline that ranks stored contacts against a conversation:
  Stage 1: Entity Normalization (typed signals, check sizes, embedding)
  Stage 2: Contact Features (tags, searchable text)
  Stage 3: Name Matching (fuzzy mention detection)
  Stage 4: Component Scoring (eight independent scorers)
  Stage 5: Aggregation (cold-start renormalization, stars)
  Stage 6: Ranking (top N with ordered reasons)
  Stage 7: LLM Explanation (top candidates only)
"""

__version__ = "2.0.0"
__author__ = "Intro Match Team"
