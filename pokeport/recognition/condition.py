"""
PokePort — Condition Assessor

Second vision prompt that grades the physical condition of a card from its
photo: edges, corners, surface and centering. Independent of the identity
scan; a user can re-grade a card already in their portfolio.
"""

from __future__ import annotations

import json

import anthropic
import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from pokeport.config import settings
from pokeport.exceptions import InputError, RecognitionFailure
from pokeport.recognition.vision import _extract_json, request_vision_json
from pokeport.utils.condition_map import CardCondition, parse_condition

logger = structlog.get_logger(__name__)

ASSESSMENT_SYSTEM_PROMPT = """\
You are an expert Pokemon card grader. Assess the card's physical condition
from the image using these grades:

MINT (10): perfect card with no visible flaws
NEAR MINT (8-9): minimal wear, very slight edge or surface issues
LIGHTLY PLAYED (6-7): light surface wear, minor edge and corner wear
MODERATELY PLAYED (4-5): moderate wear, noticeable edge/corner wear, possible creases
HEAVILY PLAYED (2-3): heavy wear, creases, scratches
DAMAGED (1): tears, water damage, heavy creases

Look for edge whitening, corner rounding, surface scratches, creases or
bends, print defects, centering problems and holofoil scratches.

Respond with ONLY a JSON object in this exact format:
{"condition": "condition name", "confidence": 0.85,
 "reasoning": "short explanation", "issues": ["issue", "issue"], "grade": 8}"""

ASSESSMENT_USER_PROMPT = (
    "Assess this Pokemon card's condition. Focus on edges, corners, surface "
    "and overall wear."
)


class ConditionAssessment(BaseModel):
    """Graded condition for one card photo."""
    condition: CardCondition
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str = ""
    issues: list[str] = Field(default_factory=list)
    grade: int = Field(..., ge=1, le=10)


class _AssessmentReply(BaseModel):
    condition: str
    confidence: float = Field(..., allow_inf_nan=False)
    reasoning: str = ""
    issues: list[str] | None = None
    grade: float = Field(..., allow_inf_nan=False)

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        return max(0.0, min(1.0, v))

    @field_validator("grade")
    @classmethod
    def clamp_grade(cls, v: float) -> float:
        return max(1.0, min(10.0, v))


def parse_assessment_reply(raw: str) -> ConditionAssessment:
    """
    Validate a grading reply.

    Raises:
        RecognitionFailure: Malformed JSON or an unrecognizable condition.
    """
    try:
        reply = _AssessmentReply.model_validate(_extract_json(raw))
    except (json.JSONDecodeError, ValueError, ValidationError) as e:
        logger.info("assessment_reply_malformed", error=str(e), source="assessment")
        raise RecognitionFailure("could not assess card condition") from e

    condition = parse_condition(reply.condition)
    if condition is None:
        logger.info(
            "assessment_rejected",
            raw_condition=reply.condition,
            source="assessment",
        )
        raise RecognitionFailure("could not assess card condition")

    return ConditionAssessment(
        condition=condition,
        confidence=reply.confidence,
        reasoning=reply.reasoning,
        issues=reply.issues or [],
        grade=round(reply.grade),
    )


class ConditionAssessor:
    """
    Grades card condition with the vision model.

    Usage:
        assessor = ConditionAssessor()
        assessment = await assessor.assess(image_bytes, "image/jpeg")
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ):
        self._client = client
        self._model = model or settings.VISION_MODEL_ID
        self._max_tokens = max_tokens or settings.ASSESSMENT_MAX_TOKENS

    async def assess(
        self,
        image_bytes: bytes,
        media_type: str = "image/jpeg",
    ) -> ConditionAssessment:
        if not image_bytes:
            raise InputError("no image provided")

        try:
            if self._client is None:
                self._client = anthropic.AsyncAnthropic(
                    api_key=settings.ANTHROPIC_API_KEY or None,
                )
            raw = await request_vision_json(
                self._client,
                model=self._model,
                system=ASSESSMENT_SYSTEM_PROMPT,
                prompt=ASSESSMENT_USER_PROMPT,
                image_bytes=image_bytes,
                media_type=media_type,
                max_tokens=self._max_tokens,
            )
        except (anthropic.AnthropicError, ValueError) as e:
            logger.error(
                "assessment_request_failed",
                error=str(e),
                error_type=type(e).__name__,
                source="assessment",
            )
            raise RecognitionFailure("could not assess card condition") from e

        assessment = parse_assessment_reply(raw)
        logger.info(
            "assessment_complete",
            condition=assessment.condition.value,
            grade=assessment.grade,
            confidence=assessment.confidence,
            source="assessment",
        )
        return assessment
