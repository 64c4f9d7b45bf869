"""Classification of Twilio real-time transcription webhooks."""
import json
import logging
from typing import Any, Mapping, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

CALL_SID_FIELDS = ("CallSid", "callSid")
EVENT_TYPE_FIELDS = ("TranscriptionEvent", "event", "EventType")
TRANSCRIPTION_DATA_FIELDS = ("TranscriptionData", "transcriptionData")
TEXT_FIELDS = ("TranscriptionText", "SpeechResult", "utterance", "transcript", "text")
FINAL_FLAG_FIELDS = ("Final", "final")
STATUS_FIELDS = ("TranscriptionStatus", "Status")
FINAL_STATUSES = ("completed", "final")


class TranscriptEvent(BaseModel):
    """A transcription webhook reduced to what the orchestrator needs."""

    call_sid: str = ""
    event_type: str = ""
    text: str = ""
    is_final: bool = False


def pick(payload: Mapping[str, Any], *keys: str) -> str:
    """Return the first non-null value among the given keys, as a string."""
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return str(value)
    return ""


def _transcript_from_data(raw: str) -> str:
    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug("[CLASSIFIER] TranscriptionData is not valid JSON")
        return ""
    if not isinstance(data, dict):
        return ""
    for key, value in data.items():
        if key.lower() == "transcript" and value is not None:
            return str(value)
    return ""


def extract_text(payload: Mapping[str, Any]) -> str:
    """
    Extract the transcript text.

    Twilio sends a JSON string in TranscriptionData with a "transcript" field;
    other payload shapes carry the text in a plain field.
    """
    data = pick(payload, *TRANSCRIPTION_DATA_FIELDS)
    if data:
        return _transcript_from_data(data).strip()
    return pick(payload, *TEXT_FIELDS).strip()


def is_final_event(payload: Mapping[str, Any]) -> bool:
    """Finality is opt-in: an event without any final signal is interim."""
    if pick(payload, *FINAL_FLAG_FIELDS).lower() == "true":
        return True
    if "stopped" in pick(payload, *EVENT_TYPE_FIELDS).lower():
        return True
    if pick(payload, *STATUS_FIELDS).lower() in FINAL_STATUSES:
        return True
    return False


def classify(payload: Mapping[str, Any]) -> TranscriptEvent:
    """Classify a raw transcription webhook payload."""
    return TranscriptEvent(
        call_sid=pick(payload, *CALL_SID_FIELDS),
        event_type=pick(payload, *EVENT_TYPE_FIELDS),
        text=extract_text(payload),
        is_final=is_final_event(payload),
    )
