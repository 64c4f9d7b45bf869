"""WAV file serving with single byte-range support."""
import logging
import re
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, Response

from app.core.dependencies import get_audio_store
from app.services.storage.audio_store import AudioStore, is_valid_file_name

router = APIRouter()
logger = logging.getLogger(__name__)

RANGE_PATTERN = re.compile(r"^bytes=(\d*)-(\d*)$")

BASE_HEADERS = {
    "Accept-Ranges": "bytes",
    "Cache-Control": "public, max-age=0",
}


class RangeNotSatisfiable(Exception):
    """The requested range lies outside the file."""


def parse_range(header: Optional[str], total: int) -> Optional[Tuple[int, int]]:
    """
    Parse a single ``bytes=start-end`` range (inclusive).

    Returns:
        (start, end), or None when the header is absent or not a single range

    Raises:
        RangeNotSatisfiable: if start > end or end is past the last byte
    """
    if not header:
        return None
    match = RANGE_PATTERN.match(header.strip())
    if not match:
        return None
    start = int(match.group(1)) if match.group(1) else 0
    end = int(match.group(2)) if match.group(2) else total - 1
    if start > end or end >= total:
        raise RangeNotSatisfiable(header)
    return start, end


@router.api_route("/audio/{file_name}", methods=["GET", "HEAD"])
async def serve_audio(
    file_name: str,
    request: Request,
    audio_store: AudioStore = Depends(get_audio_store),
):
    """Serve a stored greeting or reply WAV."""
    if not is_valid_file_name(file_name):
        return PlainTextResponse("Bad request", status_code=400)

    path = audio_store.resolve(file_name)
    if path is None:
        return PlainTextResponse("Not found", status_code=404)

    try:
        total = path.stat().st_size
        headers = dict(BASE_HEADERS)

        if request.method == "HEAD":
            headers["Content-Length"] = str(total)
            return Response(status_code=200, headers=headers, media_type="audio/wav")

        try:
            byte_range = parse_range(request.headers.get("range"), total)
        except RangeNotSatisfiable:
            headers["Content-Range"] = f"bytes */{total}"
            return Response(status_code=416, headers=headers)

        with open(path, "rb") as f:
            if byte_range is None:
                return Response(content=f.read(), headers=headers, media_type="audio/wav")
            start, end = byte_range
            f.seek(start)
            chunk = f.read(end - start + 1)

        headers["Content-Range"] = f"bytes {start}-{end}/{total}"
        return Response(content=chunk, status_code=206, headers=headers, media_type="audio/wav")
    except OSError as e:
        logger.error(f"[AUDIO] Error serving wav - file: {file_name}, Error: {e}", exc_info=True)
        return PlainTextResponse("Server error", status_code=500)
