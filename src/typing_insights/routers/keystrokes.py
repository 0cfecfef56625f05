from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from starlette import status

from ..auth import IdentityVerifier, resolve_identity
from ..dependencies import get_identity_verifier, get_keystroke_store
from ..schemas import BatchAck, KeystrokeBatchRequest
from ..storage import InMemoryKeystrokeStore

logger = logging.getLogger(__name__)

keystrokes_router = APIRouter(prefix="/keystrokes", tags=["telemetry"])


def _first_error_field(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ""
    return ".".join(str(part) for part in errors[0]["loc"])


@keystrokes_router.post(
    "/batch",
    summary="Ingest a batch of keystroke events",
    response_model=BatchAck,
    status_code=status.HTTP_200_OK,
)
# PUBLIC_INTERFACE
async def ingest_batch(
    request: Request,
    store: InMemoryKeystrokeStore = Depends(get_keystroke_store),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> BatchAck:
    """Validate and append a keystroke batch.

    Event timestamps are session-relative milliseconds. The whole batch is
    rejected if any field is missing or mistyped; nothing is deduplicated.

    Parameters:
        request: Body ``{sessionId, userId?, events[]}``.

    Returns:
        BatchAck with the stored batch id and event count.

    Raises:
        HTTPException 400 naming the first malformed field.
        HTTPException 500 if the batch could not be stored.
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Request body must be JSON", "field": ""},
        )

    try:
        batch = KeystrokeBatchRequest.model_validate(body)
    except ValidationError as e:
        field = _first_error_field(e)
        logger.info("Rejected keystroke batch: invalid field %r", field)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid event structure", "field": field},
        )

    # An authenticated identity wins; otherwise keep what the client sent (may be None)
    user_id = resolve_identity(request, verifier) or batch.user_id

    try:
        stored = store.append_batch(batch.session_id, user_id, batch.events)
    except Exception:
        logger.exception("Keystroke batch ingestion error for session %s", batch.session_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save keystroke batch",
        )

    return BatchAck(batch_id=stored.batch_id, events_count=len(stored.events))
