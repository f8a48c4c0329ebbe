"""AI-powered analysis of prepared financial documents.

One request is sent per analysis: the fixed prompt, then a header and payload
for every document. The model must answer with JSON matching
:data:`prompts.RESULT_FIELDS`. Successful results are memoised by period and
document identity so re-running the same upload costs nothing.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence, TypedDict

from google import genai
from google.genai import types
from openai import OpenAI

from . import prompts
from .cache import AnalysisCache, cache_key
from .config import Settings
from .documents import PreparedDocument, resolve_mime_type

logger = logging.getLogger(__name__)

TEXT_MIME_TYPES = ("text/plain", "text/csv")


class AnalysisResult(TypedDict, total=False):
    validationError: str
    validationNote: str
    incomeAndExpense: str
    whereMoneyIsGoing: str
    whatCanBeSaved: str
    expensesToAvoid: str
    actionsToTake: str
    subscriptions: str


class AnalysisError(RuntimeError):
    """Raised when the AI model cannot produce a usable analysis."""


def _openai_parts(prompt: str, documents: Sequence[PreparedDocument]) -> list[dict[str, Any]]:
    parts: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
    for document in documents:
        parts.append({"type": "text", "text": prompts.document_header(document)})
        mime_type = resolve_mime_type(document)
        if mime_type in TEXT_MIME_TYPES:
            parts.append({"type": "text", "text": document.payload.decode("utf-8", errors="replace")})
        elif mime_type.startswith("image/"):
            parts.append(
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{document.data}"}}
            )
        else:
            parts.append(
                {
                    "type": "file",
                    "file": {
                        "filename": document.name,
                        "file_data": f"data:{mime_type};base64,{document.data}",
                    },
                }
            )
    return parts


def _gemini_parts(prompt: str, documents: Sequence[PreparedDocument]) -> list[types.Part]:
    parts = [types.Part.from_text(text=prompt)]
    for document in documents:
        parts.append(types.Part.from_text(text=prompts.document_header(document)))
        parts.append(types.Part.from_bytes(data=document.payload, mime_type=resolve_mime_type(document)))
    return parts


def _call_openai(prompt: str, documents: Sequence[PreparedDocument], settings: Settings, client: Any) -> str:
    client = client or OpenAI(api_key=settings.openai_api_key)
    response = client.chat.completions.create(
        model=settings.openai_model,
        messages=[{"role": "user", "content": _openai_parts(prompt, documents)}],
        response_format={"type": "json_schema", "json_schema": prompts.response_json_schema()},
        temperature=0.2,
    )
    return (response.choices[0].message.content or "").strip()


def _call_gemini(prompt: str, documents: Sequence[PreparedDocument], settings: Settings, client: Any) -> str:
    client = client or genai.Client(api_key=settings.gemini_api_key)
    response = client.models.generate_content(
        model=settings.gemini_model,
        contents=_gemini_parts(prompt, documents),
        config=types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=prompts.gemini_response_schema(),
        ),
    )
    return (response.text or "").strip()


def parse_result(text: str) -> AnalysisResult:
    """Parse the model's JSON answer, filling absent sections with empty strings."""

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AnalysisError("The AI model returned a response that is not valid JSON.") from exc
    if not isinstance(payload, dict):
        raise AnalysisError("The AI model returned an unexpected response shape.")

    result: AnalysisResult = {}
    for field in prompts.RESULT_FIELDS:
        value = payload.get(field)
        result[field] = "" if value is None else str(value).strip()  # type: ignore[literal-required]
    return result


def analyze_documents(
    period_label: str,
    documents: Sequence[PreparedDocument],
    *,
    settings: Settings | None = None,
    cache: AnalysisCache | None = None,
    client: Any = None,
) -> AnalysisResult:
    """Analyse ``documents`` for ``period_label`` with the configured provider.

    ``client`` overrides the SDK client (OpenAI or ``google.genai``) and is
    mainly useful for tests.
    """

    settings = settings or Settings()
    if not documents:
        raise AnalysisError("Please upload at least one document.")

    key = cache_key(period_label, documents, scope=f"{settings.provider}:{settings.model}")
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            logger.info("Returning cached analysis result for %s", period_label)
            return cached  # type: ignore[return-value]

    if client is None and not settings.api_key:
        env_name = "GEMINI_API_KEY" if settings.provider == "gemini" else "OPENAI_API_KEY"
        raise AnalysisError(f"{env_name} not found in Streamlit secrets or environment.")

    prompt = prompts.build_prompt(period_label)
    logger.info(
        "Requesting %s analysis (%s) for %s with %d document(s)",
        settings.provider,
        settings.model,
        period_label,
        len(documents),
    )
    try:
        if settings.provider == "gemini":
            text = _call_gemini(prompt, documents, settings, client)
        else:
            text = _call_openai(prompt, documents, settings, client)
    except Exception as exc:
        logger.exception("Error analyzing documents")
        raise AnalysisError(f"AI analysis failed: {type(exc).__name__}: {exc}") from exc

    if not text:
        raise AnalysisError("No response from the AI model.")

    result = parse_result(text)
    if cache is not None:
        cache.put(key, dict(result))
    return result
