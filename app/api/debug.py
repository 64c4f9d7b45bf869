"""Debug endpoints for exercising OpenAI without a phone call."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.dependencies import get_orchestrator
from app.services.orchestrator.turns import CallTurnOrchestrator

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_TEST_TEXT = "This is a test of the voice agent."


class OpenAITestRequest(BaseModel):
    """Body for /debug/test-openai."""

    text: Optional[str] = None


@router.post("/generate-greeting")
async def generate_greeting(orchestrator: CallTurnOrchestrator = Depends(get_orchestrator)):
    """Force-generate greeting.wav and return its URL."""
    try:
        url = await orchestrator.greeting_cache.ensure_greeting(
            orchestrator.settings.voice_agent_host
        )
    except Exception as e:
        logger.error(f"[DEBUG] Generate greeting failed: {type(e).__name__}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})
    return {"ok": True, "url": url}


@router.post("/test-openai")
async def test_openai(
    body: Optional[OpenAITestRequest] = None,
    orchestrator: CallTurnOrchestrator = Depends(get_orchestrator),
):
    """Run chat and TTS end to end and store the result."""
    user_text = (body.text if body else None) or DEFAULT_TEST_TEXT
    try:
        assistant_text, file_name, size = await orchestrator.generate_reply_audio(user_text)
    except Exception as e:
        logger.error(f"[DEBUG] OpenAI test failed: {type(e).__name__}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})
    return {
        "ok": True,
        "userChars": len(user_text),
        "assistantChars": len(assistant_text),
        "bytes": size,
        "url": orchestrator.settings.absolute_url(f"/audio/{file_name}"),
    }
