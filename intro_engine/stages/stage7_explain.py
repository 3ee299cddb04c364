"""
Stage 7: LLM Explanation
========================
Short natural-language explanation of why an introduction is valuable.
Only runs for the top few 2-star+ candidates, and is best-effort: with no
API key, or on any provider error, the explanation is simply omitted.
"""

import logging
from typing import Optional, List

from openai import OpenAI

from ..models.schemas import Contact, ConversationSignals, MatchCandidate
from ..config.settings import LLM_CONFIG

logger = logging.getLogger(__name__)


class ExplanationStage:
    """
    Stage 7: Generate AI explanations for top matches.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        provider: Optional[str] = None,
        client=None,
    ):
        """
        Initialize LLM client.

        Args:
            api_key: API key for the LLM provider
            provider: "openai" or "openrouter"
            client: Preconfigured OpenAI-compatible client (skips key lookup)
        """
        self.api_key = api_key or LLM_CONFIG.get("api_key")
        self.provider = provider or LLM_CONFIG.get("provider", "openai")
        self.model = LLM_CONFIG.get("model", "gpt-4o-mini")
        self.base_url = LLM_CONFIG.get("base_url", "https://openrouter.ai/api/v1")
        self.site_url = LLM_CONFIG.get("site_url", "http://localhost:8000")
        self.app_name = LLM_CONFIG.get("app_name", "Intro Match Engine")
        self.max_tokens = LLM_CONFIG.get("max_tokens", 100)
        self.temperature = LLM_CONFIG.get("temperature", 0.7)
        self.client = client

        if self.client is None:
            self._initialize_client()

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _initialize_client(self):
        """Initialize the LLM client based on provider"""
        if not self.api_key:
            return

        if self.provider == "openrouter":
            self.client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                default_headers={
                    "HTTP-Referer": self.site_url,
                    "X-Title": self.app_name,
                }
            )
        elif self.provider == "openai":
            self.client = OpenAI(api_key=self.api_key)
        else:
            logger.warning("Unknown LLM provider %r; explanations disabled", self.provider)

    def process(
        self,
        candidate: MatchCandidate,
        contact: Contact,
        signals: ConversationSignals,
        transcript: Optional[str] = None,
    ) -> Optional[str]:
        """
        Explain one candidate.

        Returns:
            Explanation text, or None when unavailable
        """
        if not self.client:
            return None

        try:
            prompt = self._generate_prompt(candidate, contact, signals, transcript)
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            content = response.choices[0].message.content if response.choices else None
            explanation = content.strip() if content else None
        except Exception as e:
            logger.warning("Failed to generate AI explanation for %s: %s", candidate.contact_name, e)
            return None

        if explanation:
            logger.info("AI explanation for %s: %s...", candidate.contact_name, explanation[:50])
        return explanation or None

    def _generate_prompt(
        self,
        candidate: MatchCandidate,
        contact: Contact,
        signals: ConversationSignals,
        transcript: Optional[str],
    ) -> str:
        """Generate the connector prompt with conversation and contact context"""
        summary = (transcript or "")[:1000]
        if summary:
            discussion = f'Recent discussion: "{summary[:500]}..."'
        else:
            discussion = "General business meeting"

        topics = ", ".join(signals.conversation_tags[:10]) or "various business topics"

        needs: List[str] = []
        if signals.investor_types:
            needs.append(f"Fundraising: Looking for {', '.join(signals.investor_types)}")
        if signals.hiring_roles:
            needs.append(f"Hiring: Looking for {', '.join(signals.hiring_roles)}")

        profile: List[str] = [f"Name: {candidate.contact_name}"]
        if contact.title:
            profile.append(f"Role: {contact.title}")
        if contact.company:
            profile.append(f"Company: {contact.company}")
        if contact.bio:
            profile.append(f"About: {contact.bio[:200]}")
        profile.append(f"Match reasons: {', '.join(candidate.reasons)}")

        needs_block = "\n".join(needs)
        profile_block = "\n".join(profile)

        return f"""You are an expert connector who helps facilitate warm introductions between professionals.

Given this conversation context and a potential connection, write a brief, compelling 1-2 sentence explanation of why this introduction would be valuable for both parties.

CONVERSATION CONTEXT:
{discussion}
Topics discussed: {topics}
{needs_block}

POTENTIAL CONNECTION:
{profile_block}

Write a warm, professional explanation (1-2 sentences) of why connecting these parties would be mutually beneficial. Focus on specific value, not generic statements. Do not use phrases like "perfect fit" or "ideal match"."""
