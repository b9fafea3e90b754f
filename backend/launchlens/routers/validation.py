"""
Validation Router with Timing Instrumentation

Handles the /api/validate endpoint for startup idea validation.
"""

import logging
import time
from typing import Union

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ..errors import InvalidIdeaError, LaunchLensError
from ..schemas.validation import DetailedResult, SimpleResult, ValidationRequest
from ..services.decision_synthesizer import validate_idea, validate_idea_detailed

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Validation"],
    responses={
        400: {"description": "Idea text missing or too short"},
        500: {"description": "Internal server error during validation"},
    },
)


@router.post(
    "/validate",
    response_model=Union[DetailedResult, SimpleResult],
    status_code=status.HTTP_200_OK,
    summary="Validate a Startup Idea",
    response_description="Verdict with reasons, competitors and (detailed mode) scores",
)
async def validate(request: ValidationRequest):
    """
    Validate a startup idea.

    ``detailed`` switches from the quick LLM verdict to the score-driven
    analysis; ``roastMode`` only changes the tone.
    """
    start_time = time.perf_counter()
    logger.info("[TIMING] validate_endpoint: START (detailed=%s)", request.detailed)

    runner = validate_idea_detailed if request.detailed else validate_idea
    try:
        result = await runner(request.idea, roast_mode=request.roast_mode, model=request.model)
    except InvalidIdeaError as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": str(exc)},
        )
    except LaunchLensError as exc:
        total_duration = (time.perf_counter() - start_time) * 1000
        logger.error(
            "[TIMING] validate_endpoint: ERROR after %.0fms — %s", total_duration, str(exc)[:100]
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Failed to validate idea", "details": str(exc)},
        )

    total_duration = (time.perf_counter() - start_time) * 1000
    logger.info("[TIMING] validate_endpoint: END — duration=%.0fms", total_duration)
    return result
