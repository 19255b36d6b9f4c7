"""Sequential file uploads with a per-file outcome"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

from .errors import ApiError, user_message

logger = logging.getLogger(__name__)

UPLOAD_FAILED = "Не удалось загрузить файл"


@dataclass
class UploadFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class UploadOutcome:
    filename: str
    ok: bool
    url: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"filename": self.filename, "ok": self.ok, "url": self.url, "error": self.error}


async def upload_sequentially(
    files: Iterable[UploadFile],
    upload: Callable[[UploadFile], Awaitable[Optional[str]]],
) -> list[UploadOutcome]:
    """
    Upload files one after another. A failed file is reported and the
    remaining files are still attempted.
    """
    outcomes = []
    for file in files:
        try:
            url = await upload(file)
        except ApiError as e:
            logger.warning(f"Upload of {file.filename} failed: {e.message}")
            outcomes.append(
                UploadOutcome(file.filename, ok=False, error=user_message(e, UPLOAD_FAILED))
            )
            continue
        outcomes.append(UploadOutcome(file.filename, ok=True, url=url))
    return outcomes
