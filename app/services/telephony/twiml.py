"""TwiML documents returned to Twilio."""
from typing import Optional

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
PAUSE_SECONDS = 60


def escape_xml(text: str) -> str:
    """Escape XML special characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def listening_block(callback_url: str, language: str) -> str:
    """Start final-only real-time transcription and hold the call open."""
    return f"""    <Start>
        <Transcription statusCallbackUrl="{escape_xml(callback_url)}" languageCode="{escape_xml(language)}" track="inbound_track" transcriptionEngine="google" partialResults="false"/>
    </Start>
    <Pause length="{PAUSE_SECONDS}"/>"""


def greeting_block(audio_url: Optional[str] = None, text: Optional[str] = None) -> str:
    """Play the cached greeting, or speak it when no audio is available."""
    if audio_url:
        return f"    <Play>{escape_xml(audio_url)}</Play>"
    return f"    <Say>{escape_xml(text or '')}</Say>"


def build_listen_response(callback_url: str, language: str, greeting: str = "") -> str:
    """
    Build the call-start / resume response.

    Args:
        callback_url: Absolute URL Twilio posts transcription events to
        language: BCP-47 language tag for recognition
        greeting: Optional greeting block emitted before listening starts
    """
    parts = [XML_DECLARATION, "<Response>"]
    if greeting:
        parts.append(greeting)
    parts.append(listening_block(callback_url, language))
    parts.append("</Response>")
    return "\n".join(parts)


def build_play_then_resume(audio_url: str, resume_url: str) -> str:
    """Play a reply, then hand the call back to the resume webhook."""
    return f"""<Response>
    <Play>{escape_xml(audio_url)}</Play>
    <Redirect method="POST">{escape_xml(resume_url)}</Redirect>
</Response>"""
