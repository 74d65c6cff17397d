"""Classifier gate and summary generation.

The gate asks the model whether a user message needs the remote agent. The
model is asked for structured JSON; a plain-text answer is accepted only when
it begins with the literal ``true`` or ``false``. Any other answer is an
invalid response, which is fatal to the request.
"""

import json
import re

from wildcard_bridge.llm_client import LLMClient, LLMInvalidResponse
from wildcard_bridge.orchestrator.prompts import (
    CLASSIFIER_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    classifier_response_format,
)
from wildcard_bridge.orchestrator.types import Classification
from wildcard_bridge.telemetry import TraceContext, get_logger
from wildcard_bridge.telemetry.events import (
    CLASSIFICATION_COMPLETED,
    CLASSIFICATION_PARSE_FALLBACK,
    SUMMARY_GENERATED,
)

log = get_logger(__name__)

_PREFIX_PATTERN = re.compile(r"^(true|false)(?![A-Za-z0-9_])[\s:,.\-]*", re.IGNORECASE)


def _strip_code_fence(text: str) -> str:
    if text.startswith("```"):
        lines = text.split("\n")
        return "\n".join(lines[1:-1]).strip()
    return text


def parse_classification(content: str) -> tuple[Classification, bool]:
    """Parse the classifier model's answer.

    Args:
        content: Raw model output.

    Returns:
        Tuple of (Classification, used_fallback).

    Raises:
        LLMInvalidResponse: If the answer is neither the structured JSON form
            nor text starting with a ``true``/``false`` literal.
    """
    text = _strip_code_fence((content or "").strip())

    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        needs_action = parsed.get("needs_action")
        response = parsed.get("response", "")
        if isinstance(needs_action, bool) and isinstance(response, str):
            return Classification(needs_action=needs_action, text=response.strip()), False

    match = _PREFIX_PATTERN.match(text)
    if match is None:
        preview = text[:80] if text else "(empty)"
        raise LLMInvalidResponse(f"Classifier answer has no true/false decision: {preview!r}")

    needs_action = match.group(1).lower() == "true"
    return Classification(needs_action=needs_action, text=text[match.end():].strip()), True


class ClassifierGate:
    """Decides whether a message needs action and writes final summaries."""

    def __init__(self, llm_client: LLMClient) -> None:
        self.llm_client = llm_client

    async def classify(self, message: str, trace_ctx: TraceContext) -> Classification:
        """Classify a user message.

        Raises:
            LLMClientError: On any transport failure or unparseable answer.
        """
        response = await self.llm_client.respond(
            messages=[{"role": "user", "content": message}],
            system_prompt=CLASSIFIER_SYSTEM_PROMPT,
            response_format=classifier_response_format(),
            trace_ctx=trace_ctx,
        )
        classification, used_fallback = parse_classification(response["content"])
        if used_fallback:
            log.warning(CLASSIFICATION_PARSE_FALLBACK, trace_id=trace_ctx.trace_id)
        log.info(
            CLASSIFICATION_COMPLETED,
            needs_action=classification.needs_action,
            trace_id=trace_ctx.trace_id,
        )
        return classification

    async def generate_summary(self, context: str, trace_ctx: TraceContext) -> str:
        """Turn a conversation's action log into a user-facing reply.

        Raises:
            LLMClientError: On transport failure or an empty answer.
        """
        response = await self.llm_client.respond(
            messages=[{"role": "user", "content": context}],
            system_prompt=SUMMARY_SYSTEM_PROMPT,
            trace_ctx=trace_ctx,
        )
        summary = (response["content"] or "").strip()
        if not summary:
            raise LLMInvalidResponse("Summary model returned empty content")
        log.info(SUMMARY_GENERATED, summary_length=len(summary), trace_id=trace_ctx.trace_id)
        return summary
