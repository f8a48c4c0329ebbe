"""Tests for the AI analysis request, using fake SDK clients."""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest
from finance_assistant import analysis, cache, documents, prompts
from finance_assistant.config import Settings

SAMPLE_RESPONSE = {
    "validationError": "",
    "validationNote": "This analysis is based on the documents provided and may improve with additional uploads.",
    "incomeAndExpense": "| Saving/Income Categories & Values | Expenses Categories & Values |\n|---|---|\n| Salary: ₹50,000 | Rent: ₹15,000 |",
    "whereMoneyIsGoing": "### Where it goes\n1. Rent is your biggest cost.",
    "actionsToTake": "1. Cancel unused subscriptions.",
}


class FakeOpenAI:
    def __init__(self, content: str | None = None, error: Exception | None = None) -> None:
        self.calls: list[dict] = []
        self.content = json.dumps(SAMPLE_RESPONSE) if content is None else content
        self.error = error
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeGemini:
    def __init__(self, text: str) -> None:
        self.calls: list[dict] = []
        self.text = text
        self.models = SimpleNamespace(generate_content=self._generate)

    def _generate(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(text=self.text)


def _docs() -> list[documents.PreparedDocument]:
    return [
        documents.PreparedDocument("march.csv", documents.CATEGORIES[0], 10, "aa", "RGF0ZSxBbW91bnQ=", "text/csv"),
        documents.PreparedDocument("bill.jpg", documents.CATEGORIES[1], 20, "bb", "/9j/", "image/jpeg"),
        documents.PreparedDocument("card.pdf", documents.CATEGORIES[1], 30, "cc", "JVBERg==", "application/pdf"),
    ]


def test_openai_request_carries_prompt_headers_and_payloads() -> None:
    client = FakeOpenAI()
    result = analysis.analyze_documents("March 2025", _docs(), settings=Settings(openai_model="test-model"), client=client)

    call = client.calls[0]
    assert call["model"] == "test-model"
    assert call["response_format"]["type"] == "json_schema"
    assert set(call["response_format"]["json_schema"]["schema"]["required"]) == set(prompts.RESULT_FIELDS)

    parts = call["messages"][0]["content"]
    assert "The user has selected the period: March 2025." in parts[0]["text"]
    assert parts[1]["text"] == f"Document Category: {documents.CATEGORIES[0]}\nFile Name: march.csv"
    assert parts[2] == {"type": "text", "text": "Date,Amount"}
    assert parts[4]["image_url"]["url"] == "data:image/jpeg;base64,/9j/"
    assert parts[6]["file"] == {"filename": "card.pdf", "file_data": "data:application/pdf;base64,JVBERg=="}

    assert result["incomeAndExpense"].startswith("| Saving/Income")
    assert result["subscriptions"] == ""
    assert set(result) == set(prompts.RESULT_FIELDS)


def test_results_are_cached_by_document_identity() -> None:
    client = FakeOpenAI()
    store = cache.AnalysisCache()
    first = analysis.analyze_documents("March 2025", _docs(), cache=store, client=client)
    second = analysis.analyze_documents("March 2025", list(reversed(_docs())), cache=store, client=client)

    assert first == second
    assert len(client.calls) == 1

    analysis.analyze_documents("April 2025", _docs(), cache=store, client=client)
    assert len(client.calls) == 2


def test_failures_raise_and_are_not_cached() -> None:
    store = cache.AnalysisCache()
    client = FakeOpenAI(error=RuntimeError("quota exceeded"))
    with pytest.raises(analysis.AnalysisError, match="quota exceeded"):
        analysis.analyze_documents("March 2025", _docs(), cache=store, client=client)
    assert len(store) == 0


def test_empty_response_is_an_error() -> None:
    with pytest.raises(analysis.AnalysisError, match="No response"):
        analysis.analyze_documents("March 2025", _docs(), client=FakeOpenAI(content=""))


def test_invalid_json_is_an_error() -> None:
    with pytest.raises(analysis.AnalysisError, match="not valid JSON"):
        analysis.analyze_documents("March 2025", _docs(), client=FakeOpenAI(content="Sure! Here is..."))


def test_requires_documents_and_api_key() -> None:
    with pytest.raises(analysis.AnalysisError, match="Please upload at least one document."):
        analysis.analyze_documents("March 2025", [], client=FakeOpenAI())
    with pytest.raises(analysis.AnalysisError, match="OPENAI_API_KEY"):
        analysis.analyze_documents("March 2025", _docs(), settings=Settings(openai_api_key=None))


def test_gemini_provider_sends_inline_parts() -> None:
    payload = {"validationError": "One or more uploaded documents do not match the selected period."}
    client = FakeGemini(json.dumps(payload))
    settings = Settings(provider="gemini", gemini_model="gemini-test")
    result = analysis.analyze_documents("from January 2025 to March 2025", _docs(), settings=settings, client=client)

    call = client.calls[0]
    assert call["model"] == "gemini-test"
    assert call["config"].response_mime_type == "application/json"
    contents = call["contents"]
    assert len(contents) == 1 + 2 * len(_docs())
    assert contents[1].text.endswith("File Name: march.csv")
    assert contents[2].inline_data.mime_type == "text/csv"
    assert contents[2].inline_data.data == b"Date,Amount"
    assert result["validationError"].startswith("One or more uploaded documents")
    assert result["actionsToTake"] == ""


def test_parse_result_rejects_non_objects() -> None:
    with pytest.raises(analysis.AnalysisError):
        analysis.parse_result("[1, 2, 3]")


def test_cached_results_are_scoped_to_provider_and_model() -> None:
    store = cache.AnalysisCache()
    client = FakeOpenAI()
    analysis.analyze_documents("March 2025", _docs(), settings=Settings(openai_model="model-a"), cache=store, client=client)
    analysis.analyze_documents("March 2025", _docs(), settings=Settings(openai_model="model-b"), cache=store, client=client)
    assert len(client.calls) == 2

    gemini = FakeGemini(json.dumps(SAMPLE_RESPONSE))
    analysis.analyze_documents("March 2025", _docs(), settings=Settings(provider="gemini"), cache=store, client=gemini)
    assert len(gemini.calls) == 1
    assert len(store) == 3
