"""
Card scan endpoints.

Upload a card photo, get back its identity, market price and display image.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError

from pokeport.api.dependencies import get_assessor, get_pipeline
from pokeport.config import settings
from pokeport.db.snapshots import store_snapshot
from pokeport.exceptions import InputError, RecognitionFailure
from pokeport.models.pricing import MarketPrice
from pokeport.models.scan import ScanResult
from pokeport.pipeline.orchestrator import CardScanPipeline
from pokeport.recognition.condition import ConditionAssessment, ConditionAssessor

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/cards", tags=["cards"])

RESCAN_MESSAGE = (
    "Could not identify card clearly. Please retry with better lighting and focus."
)


async def read_image(image: UploadFile | None) -> tuple[bytes, str]:
    """
    Read and validate an uploaded image.

    Raises:
        HTTPException: 400 missing/empty, 413 too large, 415 not an image.
    """
    if image is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image provided")

    media_type = image.content_type or "application/octet-stream"
    if media_type not in settings.ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported image type: {media_type}",
        )

    data = await image.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Image too large",
        )
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image provided")

    return data, media_type


async def record_snapshot(request: Request, price: MarketPrice) -> None:
    """Store a price snapshot when enabled. Storage problems never fail a request."""
    if not settings.ENABLE_SNAPSHOT_STORAGE:
        return

    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        return

    try:
        async with session_factory() as session:
            await store_snapshot(price, session)
    except SQLAlchemyError as e:
        logger.error(
            "market_snapshot_store_failed",
            card_name=price.card_name,
            error=str(e),
            source="api",
        )


@router.post(
    "/scan",
    response_model=ScanResult,
    responses={400: {}, 413: {}, 415: {}, 422: {}},
)
async def scan_card(
    request: Request,
    pipeline: Annotated[CardScanPipeline, Depends(get_pipeline)],
    image: Annotated[UploadFile | None, File()] = None,
) -> ScanResult:
    """
    Scan a card image.

    Returns 422 with a rescan message when the card cannot be identified.
    """
    data, media_type = await read_image(image)

    try:
        result = await pipeline.scan_card(data, media_type)
    except InputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except RecognitionFailure as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=RESCAN_MESSAGE,
        ) from e

    await record_snapshot(request, result.market_price)
    return result


@router.post(
    "/assess-condition",
    response_model=ConditionAssessment,
    responses={400: {}, 413: {}, 415: {}, 422: {}},
)
async def assess_condition(
    assessor: Annotated[ConditionAssessor, Depends(get_assessor)],
    image: Annotated[UploadFile | None, File()] = None,
) -> ConditionAssessment:
    """Grade a card's physical condition from a photo."""
    data, media_type = await read_image(image)

    try:
        return await assessor.assess(data, media_type)
    except RecognitionFailure as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Could not assess card condition. Please retry with a clearer photo.",
        ) from e
