# reading_portal/services/audio_service.py
import logging
import shutil
import time
from pathlib import Path
from typing import BinaryIO

from reading_portal.core.config import settings

logger = logging.getLogger(__name__)

RECORDINGS_SUBDIR = "voice-recordings"

_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
}


class AudioError(Exception):
    pass


def _storage_root() -> Path:
    root = Path(settings.AUDIO_STORAGE_DIR)
    if not root.is_absolute():
        # relative to project root
        root = Path(__file__).parent.parent.parent / root
    return root


def resolve_recording(audio_url: str) -> Path:
    """Absolute path of a staged recording; rejects references outside the store."""
    root = _storage_root().resolve()
    path = (root / audio_url).resolve()
    if root not in path.parents:
        raise AudioError("invalid audio reference")
    return path


def recording_prefix(student_id: int, story_id: int) -> str:
    return f"{RECORDINGS_SUBDIR}/{student_id}_{story_id}_"


def check_recording(audio_url: str, *, student_id: int, story_id: int) -> Path:
    """
    A submission may only reference a recording the same student staged for
    the same story, and the file must exist.
    """
    if not audio_url.startswith(recording_prefix(student_id, story_id)):
        raise AudioError("recording does not belong to this student and story")
    path = resolve_recording(audio_url)
    if not path.is_file():
        raise AudioError("recording not found")
    return path


def stage_recording(
    fileobj: BinaryIO,
    *,
    content_type: str | None,
    student_id: int,
    story_id: int,
) -> str:
    """
    Write an uploaded recording to the recordings store.

    The upload handle is closed whether or not the write succeeds.

    Returns:
        The relative reference to pass as ``audio_url`` when submitting.
    """
    try:
        base_type = (content_type or "").split(";")[0].strip().lower()
        if not base_type.startswith("audio/"):
            raise AudioError(f"unsupported content type: {content_type!r}")

        ext = _EXTENSIONS.get(base_type, "webm")
        timestamp = int(time.time() * 1000)
        relative = f"{recording_prefix(student_id, story_id)}{timestamp}.{ext}"

        target = _storage_root() / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as out:
            shutil.copyfileobj(fileobj, out)

        logger.info(f"Staged recording for student {student_id}, story {story_id}: {relative}")
        return relative
    finally:
        fileobj.close()
