"""
TASKBOARD - Attachment Ingestion
================================
Reads raw file payloads and encodes them as inline data URIs.

Reading happens before any state transition; a failed read rejects the whole
operation and the board is left untouched.
"""

import asyncio
import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .exceptions import AttachmentReadFailure
from .schema import Attachment, new_id

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass
class FilePayload:
    """A file handed over by the presentation layer (in-memory or on disk)"""
    name: str
    content: Optional[bytes] = None
    path: Optional[Path] = None
    media_type: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, Path], media_type: Optional[str] = None) -> "FilePayload":
        path = Path(path)
        return cls(name=path.name, path=path, media_type=media_type)

    def guess_media_type(self) -> str:
        if self.media_type:
            return self.media_type
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed or DEFAULT_MEDIA_TYPE


def to_data_uri(content: bytes, media_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


def decode_data_uri(data: str) -> bytes:
    """Inverse of to_data_uri (used by the CLI export-attachment command)"""
    header, _, payload = data.partition(",")
    if not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URI")
    return base64.b64decode(payload)


async def _read_bytes(payload: FilePayload) -> bytes:
    if payload.content is not None:
        return payload.content
    if payload.path is None:
        raise AttachmentReadFailure(payload.name, "no content or path given")
    try:
        return await asyncio.to_thread(payload.path.read_bytes)
    except OSError as e:
        raise AttachmentReadFailure(payload.name, str(e)) from e


async def read_attachment(payload: FilePayload) -> Attachment:
    """Read one payload and build its Attachment (fresh id)"""
    content = await _read_bytes(payload)
    media_type = payload.guess_media_type()
    return Attachment(
        id=new_id("attachment"),
        name=payload.name,
        media_type=media_type,
        data=to_data_uri(content, media_type),
    )


async def read_attachments(payloads: Sequence[FilePayload]) -> List[Attachment]:
    """Read all payloads concurrently; any failure fails the batch.

    Result order matches `payloads`.
    """
    results = await asyncio.gather(
        *(read_attachment(p) for p in payloads), return_exceptions=True
    )
    # Every read is awaited; the first failure (in payload order) wins
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)
