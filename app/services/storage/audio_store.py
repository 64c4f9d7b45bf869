"""On-disk store for greeting and reply WAV files."""
import logging
import os
import secrets
import tempfile
import time
from pathlib import Path
from typing import Optional, Tuple

from app.core.errors import AudioStoreError

logger = logging.getLogger(__name__)

GREETING_FILE = "greeting.wav"
AUDIO_EXTENSION = ".wav"


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def new_artifact_id() -> str:
    """Millisecond timestamp in base 36 plus 8 random hex characters."""
    return f"{_base36(int(time.time() * 1000))}-{secrets.token_hex(4)}"


def is_valid_file_name(file_name: str) -> bool:
    """Only plain *.wav names are served."""
    if not file_name or not file_name.endswith(AUDIO_EXTENSION):
        return False
    return ".." not in file_name and "/" not in file_name and "\\" not in file_name


class AudioStore:
    """Stores WAV artifacts in a single directory."""

    def __init__(self, audio_dir: str):
        self.audio_dir = Path(audio_dir)

    def ensure_dir(self) -> None:
        self.audio_dir.mkdir(parents=True, exist_ok=True)

    def has_greeting(self) -> bool:
        return (self.audio_dir / GREETING_FILE).is_file()

    def _write_atomic(self, file_name: str, audio: bytes) -> Path:
        """Write to a temp file in the same directory and rename into place."""
        if not isinstance(audio, (bytes, bytearray)) or not audio:
            raise AudioStoreError(f"Refusing to write empty audio to {file_name}")
        self.ensure_dir()
        target = self.audio_dir / file_name
        fd, tmp_path = tempfile.mkstemp(dir=self.audio_dir, prefix=".tmp-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(audio)
            os.replace(tmp_path, target)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise AudioStoreError(f"Failed to write {file_name}: {e}") from e
        return target

    def save_greeting(self, audio: bytes) -> Path:
        path = self._write_atomic(GREETING_FILE, audio)
        logger.info(f"[AUDIO STORE] Greeting saved - bytes: {len(audio)}")
        return path

    def save_reply(self, audio: bytes) -> Tuple[str, Path]:
        """
        Save a turn reply under a fresh identifier.

        Returns:
            (file name, path)
        """
        file_name = f"{new_artifact_id()}{AUDIO_EXTENSION}"
        while (self.audio_dir / file_name).exists():
            file_name = f"{new_artifact_id()}{AUDIO_EXTENSION}"
        path = self._write_atomic(file_name, audio)
        logger.debug(f"[AUDIO STORE] Reply saved - file: {file_name}, bytes: {len(audio)}")
        return file_name, path

    def resolve(self, file_name: str) -> Optional[Path]:
        """Return the path of an existing artifact, or None."""
        path = self.audio_dir / file_name
        return path if path.is_file() else None
