"""
PokePort — Card Recognition Adapter

Sends the uploaded card image to a vision-capable model and turns its JSON
reply into a CardIdentity.

Rejection policy: a missing name, the "unknown" sentinel, a malformed reply
or a confidence below RECOGNITION_CONFIDENCE_THRESHOLD all fail the scan
with RecognitionFailure. A wrong identity silently produces a wrong price,
so an explicit "please rescan" is the better outcome.
"""

from __future__ import annotations

import base64
import json
import re
from typing import Any

import anthropic
import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from pokeport.config import settings
from pokeport.exceptions import InputError, RecognitionFailure
from pokeport.recognition import CardIdentity

logger = structlog.get_logger(__name__)

UNCLEAR_REASON = "could not identify card clearly"

_UNKNOWN_NAMES = frozenset({"unknown", "unknown card", "n/a", "none"})

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

RECOGNITION_SYSTEM_PROMPT = """\
You are an expert Pokemon card recognition system. Read ONLY the text that is
actually visible on the card in the image. Never guess a card you cannot read.

Extract:
- name: the card name exactly as printed
- set: the set name (e.g. "Base Set", "Jungle", "Paldea Evolved")
- cardNumber: the collector number exactly as printed (e.g. "4/102")
- condition: one of Mint, Near Mint, Excellent, Good, Fair, Poor
- confidence: your certainty in the identification, 0 to 1
- rarity: if visible
- type: the Pokemon type, if visible

If the card cannot be read, use "Unknown" for the name and a confidence below 0.5.

Respond with ONLY a JSON object in this exact format, no other text:
{"name": "card name", "set": "set name", "cardNumber": "number/total",
 "condition": "condition", "confidence": 0.95, "rarity": "rarity",
 "type": "pokemon type"}"""

RECOGNITION_USER_PROMPT = (
    "Identify this Pokemon card and return the recognition data as JSON."
)


class RecognitionReply(BaseModel):
    """Raw JSON contract expected back from the vision model."""
    name: str
    set: str
    cardNumber: str
    condition: str
    confidence: float = Field(..., allow_inf_nan=False)
    rarity: str | None = None
    type: str | None = None

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        """Models occasionally report 1.05 or -0.1; pin to [0, 1]."""
        return max(0.0, min(1.0, v))

    @field_validator("name", "set", "cardNumber", "condition")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


def _extract_json(raw: str) -> dict[str, Any]:
    """Parse a model reply that may be wrapped in a markdown code fence."""
    text = _FENCE.sub("", raw.strip())
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_recognition_reply(
    raw: str,
    threshold: float | None = None,
) -> CardIdentity:
    """
    Validate a vision-model reply and build a CardIdentity.

    Args:
        raw: Reply text from the model.
        threshold: Minimum accepted confidence (default from config: 0.6).

    Returns:
        CardIdentity for a confident, named recognition.

    Raises:
        RecognitionFailure: Malformed JSON, missing fields, unknown name,
                            or confidence below threshold.
    """
    min_confidence = (
        threshold if threshold is not None else settings.RECOGNITION_CONFIDENCE_THRESHOLD
    )

    try:
        reply = RecognitionReply.model_validate(_extract_json(raw))
    except (json.JSONDecodeError, ValueError, ValidationError) as e:
        logger.info(
            "recognition_reply_malformed",
            error=str(e),
            reply_length=len(raw),
            source="recognition",
        )
        raise RecognitionFailure(UNCLEAR_REASON) from e

    if not reply.name or reply.name.lower() in _UNKNOWN_NAMES:
        logger.info("recognition_rejected", reason="unknown_name", source="recognition")
        raise RecognitionFailure(UNCLEAR_REASON)

    if reply.confidence < min_confidence:
        logger.info(
            "recognition_rejected",
            reason="low_confidence",
            card_name=reply.name,
            confidence=reply.confidence,
            threshold=min_confidence,
            source="recognition",
        )
        raise RecognitionFailure(UNCLEAR_REASON)

    return CardIdentity(
        name=reply.name,
        set=reply.set,
        card_number=reply.cardNumber,
        condition=reply.condition,
        confidence=reply.confidence,
        rarity=reply.rarity or None,
        type=reply.type or None,
    )


async def request_vision_json(
    client: anthropic.AsyncAnthropic,
    *,
    model: str,
    system: str,
    prompt: str,
    image_bytes: bytes,
    media_type: str,
    max_tokens: int,
) -> str:
    """
    Send one image plus an instruction to the vision model.

    Only image bytes and a fixed prompt are sent; no user-supplied text.

    Returns:
        The model's text reply.

    Raises:
        anthropic.APIError: Transport or API failure.
        ValueError: Reply carried no text block.
    """
    image_data = base64.standard_b64encode(image_bytes).decode("utf-8")

    response = await client.messages.create(
        model=model,
        max_tokens=max_tokens,
        system=system,
        messages=[{
            "role": "user",
            "content": [
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": media_type,
                        "data": image_data,
                    },
                },
                {"type": "text", "text": prompt},
            ],
        }],
    )

    try:
        return response.content[0].text
    except (IndexError, AttributeError) as e:
        raise ValueError("vision reply contained no text block") from e


class CardRecognizer:
    """
    Recognition adapter around the Anthropic Messages API.

    Stateless: one call per scan. The SDK client is injected for tests and
    created lazily from settings otherwise.

    Usage:
        recognizer = CardRecognizer()
        identity = await recognizer.recognize(image_bytes, "image/png")
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None = None,
        model: str | None = None,
        threshold: float | None = None,
        max_tokens: int | None = None,
    ):
        self._client = client
        self._model = model or settings.VISION_MODEL_ID
        self._threshold = (
            threshold if threshold is not None else settings.RECOGNITION_CONFIDENCE_THRESHOLD
        )
        self._max_tokens = max_tokens or settings.VISION_MAX_TOKENS

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            if not settings.ANTHROPIC_API_KEY:
                logger.warning("vision_api_key_missing", source="recognition")
            self._client = anthropic.AsyncAnthropic(
                api_key=settings.ANTHROPIC_API_KEY or None,
            )
        return self._client

    async def recognize(
        self,
        image_bytes: bytes,
        media_type: str = "image/jpeg",
    ) -> CardIdentity:
        """
        Identify the card in an image.

        Args:
            image_bytes: Raw image bytes (JPEG, PNG, WebP or GIF).
            media_type: MIME type of the image.

        Returns:
            CardIdentity with confidence >= threshold.

        Raises:
            InputError: No image bytes.
            RecognitionFailure: The model could not identify the card.
        """
        if not image_bytes:
            raise InputError("no image provided")

        logger.info(
            "recognition_started",
            image_size_bytes=len(image_bytes),
            media_type=media_type,
            model=self._model,
            source="recognition",
        )

        try:
            raw = await request_vision_json(
                self._get_client(),
                model=self._model,
                system=RECOGNITION_SYSTEM_PROMPT,
                prompt=RECOGNITION_USER_PROMPT,
                image_bytes=image_bytes,
                media_type=media_type,
                max_tokens=self._max_tokens,
            )
        except (anthropic.AnthropicError, ValueError) as e:
            logger.error(
                "recognition_request_failed",
                error=str(e),
                error_type=type(e).__name__,
                source="recognition",
            )
            raise RecognitionFailure(UNCLEAR_REASON) from e

        identity = parse_recognition_reply(raw, threshold=self._threshold)

        logger.info(
            "recognition_complete",
            card_name=identity.name,
            set_name=identity.set,
            card_number=identity.card_number,
            confidence=identity.confidence,
            source="recognition",
        )
        return identity
