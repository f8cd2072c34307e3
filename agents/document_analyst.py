# =============================================================================
# agents/document_analyst.py - Document Analysis Agent
# =============================================================================
# This module turns extracted document text into a validated AnalysisResult.
#
# The Analyst's job:
# 1. Truncate the text to the character budget and build the prompt
# 2. Call the model with JSON mode forced on
# 3. Parse and validate the answer against AnalysisResult
#
# Shape failures in step 3 are not raised. They are logged as a distinct
# error kind and produce the fallback analysis, flagged with a warning so the
# caller can tell it apart from a genuine result.
#
# Usage:
#   from agents.document_analyst import DocumentAnalyst
#   analyst = DocumentAnalyst()
#   outcome = analyst.analyze(text)
# =============================================================================

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from openai import OpenAI
from pydantic import ValidationError

from app.config import Settings, settings as default_settings
from app.exceptions import ModelServiceError
from agents.prompts.analysis_prompt import build_analysis_prompt
from core.models.analysis import (
    AnalysisKind,
    AnalysisResult,
    AnalysisWarning,
    DocumentType,
    ProposedTask,
)
from core.models.task import TaskPriority

# Set up logging for this module
logger = logging.getLogger(__name__)

UNPARSEABLE = "ANALYSIS_UNPARSEABLE"
SCHEMA_INVALID = "ANALYSIS_SCHEMA_INVALID"


# =============================================================================
# Outcome
# =============================================================================

@dataclass
class AnalysisOutcome:
    """What the analyst produced, and whether it is genuine or the fallback."""
    result: AnalysisResult
    kind: AnalysisKind
    warning: AnalysisWarning | None = None


def fallback_analysis() -> AnalysisResult:
    """
    The analysis used when the model's output cannot be used.

    Always the same single generic task, so behavior is deterministic.
    """
    return AnalysisResult(
        document_type=DocumentType.OTHER,
        tasks=[
            ProposedTask(
                title="Review uploaded document",
                description=(
                    "The document could not be analyzed automatically. "
                    "Read it through and add any care tasks by hand."
                ),
                priority=TaskPriority.MEDIUM,
            )
        ],
        key_information=[],
        summary="Automatic analysis was unavailable for this document.",
    )


# =============================================================================
# Document Analyst
# =============================================================================

class DocumentAnalyst:
    """
    Extracts care tasks from document text via a single model call.

    Example:
        analyst = DocumentAnalyst()
        outcome = analyst.analyze("Discharge summary: ...")
        outcome.kind            # AnalysisKind.ANALYSIS
        outcome.result.tasks    # [ProposedTask(...), ...]

    Attributes:
        model: Model ID (default from settings)
        temperature: Generation temperature (default 0.1)
        max_tokens: Output token ceiling
        max_chars: Text truncation budget
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: OpenAI | None = None,
    ):
        settings = settings or default_settings
        self.client = client or OpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
        )
        self.model = settings.OPENAI_MODEL
        self.temperature = settings.ANALYSIS_TEMPERATURE
        self.max_tokens = settings.ANALYSIS_MAX_TOKENS
        self.max_chars = settings.ANALYSIS_MAX_CHARS

        logger.debug(f"DocumentAnalyst initialized with model={self.model}, temp={self.temperature}")

    # -------------------------------------------------------------------------
    # Main Entry Point
    # -------------------------------------------------------------------------

    def analyze(self, text: str) -> AnalysisOutcome:
        """
        Analyze document text.

        Args:
            text: Non-empty text extracted from the document

        Returns:
            AnalysisOutcome with kind ANALYSIS, or FALLBACK plus a warning

        Raises:
            ModelServiceError: If the model call fails or returns nothing
        """
        prompt = self.build_prompt(text)
        response_text = self._call_model(prompt)
        return self.parse_response(response_text)

    # -------------------------------------------------------------------------
    # Prompt
    # -------------------------------------------------------------------------

    def build_prompt(self, text: str) -> str:
        """Truncate to the character budget and fill the template."""
        if len(text) > self.max_chars:
            logger.info(f"Truncating document text from {len(text)} to {self.max_chars} chars")
        return build_analysis_prompt(text[:self.max_chars])

    # -------------------------------------------------------------------------
    # Model Call
    # -------------------------------------------------------------------------

    def _call_model(self, prompt: str) -> str:
        logger.info(f"Sending document to model: model={self.model}, prompt_chars={len(prompt)}")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},  # Force JSON output
            )
        except Exception as e:
            logger.error(f"Model call failed: {e}")
            raise ModelServiceError(f"Model API call failed: {e}", model=self.model)

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.error("Model returned empty content")
            raise ModelServiceError("No analysis result", model=self.model)

        logger.debug(f"Model response: {content[:200]}...")
        return content

    # -------------------------------------------------------------------------
    # Response Parsing
    # -------------------------------------------------------------------------

    def parse_response(self, response_text: str) -> AnalysisOutcome:
        """
        Parse model output into an AnalysisOutcome.

        Invalid JSON and schema mismatches are reported as separate warning
        codes; both yield the fallback analysis.
        """
        try:
            data = json.loads(response_text)
        except json.JSONDecodeError as e:
            logger.warning(f"{UNPARSEABLE}: model output is not valid JSON: {e}")
            logger.debug(f"Raw model output: {response_text[:500]}")
            return self._fallback(UNPARSEABLE, f"Model output is not valid JSON: {e}")

        try:
            result = AnalysisResult.model_validate(data)
        except ValidationError as e:
            logger.warning(f"{SCHEMA_INVALID}: {e.error_count()} validation errors")
            logger.debug(f"Validation errors: {e.errors()}")
            return self._fallback(SCHEMA_INVALID, f"Model output did not match the analysis schema ({e.error_count()} errors)")

        logger.info(f"Analysis parsed: type={result.document_type.value}, tasks={len(result.tasks)}")
        return AnalysisOutcome(result=result, kind=AnalysisKind.ANALYSIS)

    @staticmethod
    def _fallback(code: str, detail: str) -> AnalysisOutcome:
        return AnalysisOutcome(
            result=fallback_analysis(),
            kind=AnalysisKind.FALLBACK,
            warning=AnalysisWarning(code=code, detail=detail),
        )
