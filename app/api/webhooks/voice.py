"""Twilio voice webhook endpoints."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from app.core.config import Settings
from app.core.dependencies import get_orchestrator, get_settings, get_turn_worker
from app.core.security import is_twilio_request, require_twilio_signature
from app.services.orchestrator.turns import CallTurnOrchestrator
from app.services.orchestrator.worker import TurnWorker
from app.services.transcription.classifier import CALL_SID_FIELDS, classify, pick

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/voice", dependencies=[Depends(require_twilio_signature)])
async def handle_incoming_call(
    request: Request,
    orchestrator: CallTurnOrchestrator = Depends(get_orchestrator),
):
    """
    Handle a call-start webhook from Twilio.

    Plays the greeting the first time a CallSid is seen, then starts
    final-only transcription and parks the call.
    """
    form = await request.form()
    call_sid = pick(form, *CALL_SID_FIELDS)
    logger.info(
        f"[CALL START] Received call webhook - CallSid: {call_sid or 'none'}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    try:
        twiml = await orchestrator.handle_call_start(call_sid)
    except Exception as e:
        logger.error(
            f"[CALL START] Error processing call - CallSid: {call_sid}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Server error")

    return Response(content=twiml, media_type="text/xml")


@router.post("/resume", dependencies=[Depends(require_twilio_signature)])
async def handle_resume(
    orchestrator: CallTurnOrchestrator = Depends(get_orchestrator),
):
    """Restart transcription after a reply was played, without greeting."""
    return Response(content=orchestrator.handle_resume(), media_type="text/xml")


@router.post("/transcription", status_code=204)
async def handle_transcription(
    request: Request,
    settings: Settings = Depends(get_settings),
    worker: TurnWorker = Depends(get_turn_worker),
):
    """
    Handle a real-time transcription event.

    Always answers 204 so Twilio never retries. Final transcripts are queued
    for chat, speech synthesis and call redirect after the response.
    """
    if not await is_twilio_request(request, settings):
        logger.warning("[TRANSCRIPTION] Invalid Twilio signature, event dropped")
        return Response(status_code=204)

    try:
        event = classify(await request.form())
    except Exception as e:
        logger.error(f"[TRANSCRIPTION] Unreadable event dropped - Error: {type(e).__name__}: {e}")
        return Response(status_code=204)

    worker.submit(event)
    return Response(status_code=204)
