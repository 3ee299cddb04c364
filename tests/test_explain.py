from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from intro_engine.models.schemas import ConversationSignals, MatchCandidate
from intro_engine.stages.stage7_explain import ExplanationStage

from conftest import make_contact


def completion(text):
    message = SimpleNamespace(content=text)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def candidate():
    return MatchCandidate(
        contact_id="1", contact_name="Jane Doe", star_score=3, raw_score=0.6,
        reasons=["Matches: fintech", "Angel investor"],
    )


SIGNALS = ConversationSignals(
    conversation_tags=["fintech", "seed"],
    investor_types=["Angel"],
    hiring_roles=["CTO"],
)


class TestExplanationStage:
    def test_no_client_returns_none(self):
        stage = ExplanationStage(api_key="unused")
        stage.client = None
        assert not stage.enabled
        assert stage.process(candidate(), make_contact(), SIGNALS) is None

    def test_returns_stripped_text(self):
        client = MagicMock()
        client.chat.completions.create.return_value = completion("  Jane backs seed fintech.  ")
        stage = ExplanationStage(client=client)

        assert stage.process(candidate(), make_contact(), SIGNALS) == "Jane backs seed fintech."

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["max_tokens"] == 100
        assert kwargs["temperature"] == 0.7

    def test_prompt_includes_context(self):
        client = MagicMock()
        client.chat.completions.create.return_value = completion("ok")
        stage = ExplanationStage(client=client)
        contact = make_contact(title="Partner", company="Seed Co", bio="Invests in payments")

        stage.process(candidate(), contact, SIGNALS, transcript="We talked about the seed round")

        prompt = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert "Topics discussed: fintech, seed" in prompt
        assert "Fundraising: Looking for Angel" in prompt
        assert "Hiring: Looking for CTO" in prompt
        assert "Role: Partner" in prompt
        assert "Company: Seed Co" in prompt
        assert "Match reasons: Matches: fintech, Angel investor" in prompt
        assert "seed round" in prompt

    def test_provider_error_returns_none(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = RuntimeError("rate limited")
        stage = ExplanationStage(client=client)
        assert stage.process(candidate(), make_contact(), SIGNALS) is None

    def test_empty_completion_returns_none(self):
        client = MagicMock()
        client.chat.completions.create.return_value = completion("")
        stage = ExplanationStage(client=client)
        assert stage.process(candidate(), make_contact(), SIGNALS) is None

    def test_openrouter_client_headers(self):
        with patch("intro_engine.stages.stage7_explain.OpenAI") as openai_cls:
            ExplanationStage(api_key="sk-test", provider="openrouter")
        kwargs = openai_cls.call_args.kwargs
        assert kwargs["api_key"] == "sk-test"
        assert "HTTP-Referer" in kwargs["default_headers"]
