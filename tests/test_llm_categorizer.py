from types import SimpleNamespace

import anthropic
import pytest

from spendlite.core.llm_categorizer import LLMCategorizer

CATEGORIES = ["groceries", "PETROL", " transport ", ""]


class FakeMessages:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.text)])


def make(text=None, error=None):
    client = SimpleNamespace(messages=FakeMessages(text, error))
    return LLMCategorizer(CATEGORIES, client=client), client.messages


def test_categories_are_normalised():
    llm, _ = make('{"category": "PETROL"}')
    assert llm.categories == ["GROCERIES", "PETROL", "TRANSPORT"]


def test_disabled_without_client_or_key():
    llm = LLMCategorizer(CATEGORIES)
    assert llm.enabled is False
    assert llm.suggest_category("COLES") is None


def test_disabled_without_categories():
    llm = LLMCategorizer([], client=SimpleNamespace(messages=FakeMessages("{}")))
    assert llm.enabled is False


def test_api_key_builds_client():
    llm = LLMCategorizer(CATEGORIES, api_key="sk-test")
    assert isinstance(llm.client, anthropic.Anthropic)
    assert llm.enabled is True


def test_suggests_allowed_category():
    llm, messages = make('{"category": "petrol"}')
    assert llm.suggest_category("SHELL COLES EXPRESS", -60.5) == "PETROL"

    call = messages.calls[0]
    assert call["model"] == llm.model
    prompt = call["messages"][0]["content"]
    assert "SHELL COLES EXPRESS" in prompt
    assert "-60.50" in prompt
    assert "- GROCERIES" in prompt


def test_strips_markdown_fences():
    llm, _ = make('```json\n{"category": "GROCERIES"}\n```')
    assert llm.suggest_category("COLES") == "GROCERIES"


@pytest.mark.parametrize("text", ["not json", '{"category": "YACHTS"}', '["GROCERIES"]', "{}"])
def test_bad_answers_give_none(text):
    llm, _ = make(text)
    assert llm.suggest_category("COLES") is None


def test_api_error_gives_none(caplog):
    llm, _ = make(error=anthropic.APIError("overloaded", None, body=None))
    assert llm.suggest_category("COLES") is None
    assert "LLM category suggestion failed" in caplog.text
