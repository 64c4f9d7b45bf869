"""Twilio webhook signature verification."""
import logging
from typing import Any, Mapping, Optional

from fastapi import Depends, HTTPException, Request
from twilio.request_validator import RequestValidator

from app.core.config import Settings
from app.core.dependencies import get_settings

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Twilio-Signature"


def _get_header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    """Case-insensitive header lookup that works for plain dicts too."""
    value = headers.get(name)
    if value is not None:
        return str(value)
    lowered = name.lower()
    for key, val in headers.items():
        if key.lower() == lowered:
            return str(val)
    return None


def verify_signature(
    enabled: bool,
    secret: Optional[str],
    full_url: Optional[str],
    headers: Mapping[str, Any],
    form_body: Optional[Mapping[str, Any]],
) -> bool:
    """
    Validate that a webhook was signed by Twilio.

    Args:
        enabled: When False verification is skipped and True is returned
        secret: Twilio auth token
        full_url: Public URL Twilio posted to, including any query string
        headers: Request headers
        form_body: Decoded form fields

    Returns:
        True if the signature header matches
    """
    if not enabled:
        return True

    signature = _get_header(headers, SIGNATURE_HEADER)
    if not signature or not secret or not full_url:
        return False

    validator = RequestValidator(secret)
    return validator.validate(full_url, dict(form_body or {}), signature)


def public_request_url(request: Request, settings: Settings) -> str:
    """Rebuild the URL Twilio signed from the configured public host."""
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return settings.absolute_url(path)


async def is_twilio_request(request: Request, settings: Settings) -> bool:
    """Check the signature of a form-encoded webhook request."""
    if not settings.twilio_validate_signature:
        return True
    form = await request.form()
    return verify_signature(
        enabled=True,
        secret=settings.twilio_auth_token,
        full_url=public_request_url(request, settings),
        headers=request.headers,
        form_body={key: value for key, value in form.items()},
    )


async def require_twilio_signature(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """Dependency rejecting webhooks that were not signed by Twilio."""
    if not await is_twilio_request(request, settings):
        logger.warning(f"[SECURITY] Twilio signature invalid on {request.url.path}")
        raise HTTPException(status_code=403, detail="Invalid Twilio signature")
