"""
Storage service for uploaded media on the local filesystem
"""
import re
import uuid
import aiofiles
from pathlib import Path
from typing import Optional
import logging

from ..config import settings
from ..exceptions import EmptyFileError, FileTooLargeError

logger = logging.getLogger(__name__)

# Upload kinds and the directory each one lands in under <media_root>/uploads
UPLOAD_DIRS = {
    "video": "videos",
    "thumbnail": "thumbnails",
    "trailer": "trailers",
    "episode": "episodes",
    "profile": "profiles",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
CHUNK_SIZE = 1024 * 1024


class StorageService:
    """Writes uploads under the media root and maps them to public /media URLs"""

    def __init__(self, media_root: Optional[str] = None):
        self.media_root = Path(media_root or settings.media_root)
        for subdir in UPLOAD_DIRS.values():
            (self.media_root / "uploads" / subdir).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _safe_name(filename: Optional[str]) -> str:
        name = Path(filename or "upload").name
        return _UNSAFE_CHARS.sub("_", name) or "upload"

    async def save_upload(self, kind: str, upload, max_mb: int) -> str:
        """
        Validate and store an uploaded file, streaming it to disk in chunks.

        A declared size over the limit is refused before anything is read; a
        partially written file is removed when the limit is hit mid-stream.

        Args:
            kind: One of UPLOAD_DIRS (video, thumbnail, trailer, episode, profile)
            upload: FastAPI UploadFile (anything with `filename` and async `read(n)`)
            max_mb: Size limit for this kind of file

        Returns:
            Public URL path of the stored file, e.g. /media/uploads/videos/<uuid>_clip.mp4
        """
        limit = max_mb * 1024 * 1024
        size = getattr(upload, "size", None)
        if size is not None and size > limit:
            raise FileTooLargeError(kind, max_mb)

        subdir = UPLOAD_DIRS[kind]
        stored_name = f"{uuid.uuid4().hex}_{self._safe_name(upload.filename)}"
        target = self.media_root / "uploads" / subdir / stored_name

        written = 0
        try:
            async with aiofiles.open(target, "wb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > limit:
                        raise FileTooLargeError(kind, max_mb)
                    await f.write(chunk)
            if written == 0:
                raise EmptyFileError(kind)
        except (FileTooLargeError, EmptyFileError):
            target.unlink(missing_ok=True)
            raise

        logger.info(f"Stored {kind} upload at {target} ({written} bytes)")
        return f"/media/uploads/{subdir}/{stored_name}"

    def resolve(self, public_url: str) -> Optional[Path]:
        """Map a /media URL back to a path inside the media root"""
        if not public_url or not public_url.startswith("/media/"):
            return None
        path = (self.media_root / public_url[len("/media/"):]).resolve()
        if self.media_root.resolve() not in path.parents:
            return None
        return path

    def delete_file(self, public_url: str) -> bool:
        """Delete a stored file; False when it is missing or outside the media root"""
        path = self.resolve(public_url)
        if path is None or not path.exists():
            logger.warning(f"Stored file not found: {public_url}")
            return False
        try:
            path.unlink()
            return True
        except OSError as e:
            logger.error(f"File deletion failed: {e}")
            return False


# Global storage service instance
storage_service = StorageService()
