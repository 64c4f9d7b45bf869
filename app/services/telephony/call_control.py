"""Live call control through the Twilio REST API."""
import asyncio
import logging
from typing import Optional

import requests
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from app.core.config import Settings
from app.core.errors import ProviderError, TransportError
from app.services.pipeline.base import CallController
from app.services.telephony.twiml import build_play_then_resume

logger = logging.getLogger(__name__)


class TwilioCallController(CallController):
    """Redirects live calls by updating them with inline TwiML."""

    def __init__(self, settings: Settings, client: Optional[TwilioClient] = None):
        self.client = client or TwilioClient(
            settings.twilio_account_sid, settings.twilio_auth_token
        )

    def _update_call(self, call_sid: str, twiml: str):
        return self.client.calls(call_sid).update(twiml=twiml)

    async def redirect_live_call(self, call_sid: str, audio_url: str, resume_url: str) -> None:
        """
        Redirect a live call to play audio, then continue at the resume URL.

        Raises:
            TransportError: if Twilio could not be reached
            ProviderError: if Twilio rejected the update
        """
        twiml = build_play_then_resume(audio_url, resume_url)
        logger.info(f"[CALL CONTROL] Redirecting call - CallSid: {call_sid}, audio: {audio_url}")

        # The Twilio client is blocking, keep it off the event loop
        try:
            call = await asyncio.to_thread(self._update_call, call_sid, twiml)
        except TwilioRestException as e:
            logger.error(
                f"[CALL CONTROL] Twilio rejected redirect - CallSid: {call_sid}, "
                f"status: {e.status}, code: {e.code}, msg: {e.msg}"
            )
            raise ProviderError("Twilio redirect", e.status, str(e.msg)) from e
        except requests.RequestException as e:
            logger.error(
                f"[CALL CONTROL] Transport error - CallSid: {call_sid}, "
                f"Error: {type(e).__name__}: {e}"
            )
            raise TransportError(f"Twilio redirect failed: {e}") from e

        logger.debug(
            f"[CALL CONTROL] Call updated - CallSid: {call_sid}, "
            f"status: {getattr(call, 'status', 'unknown')}"
        )
