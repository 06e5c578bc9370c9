import json
import logging
import mimetypes
import os
import tempfile
import uuid
from pathlib import Path
from typing import Iterator, List, Optional

from pydantic import ValidationError

from .errors import MetadataNotFoundError, StorageWriteError
from .models import ArtifactRecord, MediaKind
from .security import is_safe_artifact_id, is_within

logger = logging.getLogger(__name__)

MEDIA_KIND_DIRS = {"image": "images", "video": "videos"}

IMAGE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
}
DEFAULT_VIDEO_EXTENSION = "mp4"


def resource_uri(kind: MediaKind, artifact_id: str) -> str:
    """Generates the resource locator for a stored artifact, e.g. images://<id>."""
    return f"{MEDIA_KIND_DIRS[kind]}://{artifact_id}"


def extension_for(kind: MediaKind, mime_type: str) -> str:
    if kind == "image":
        return IMAGE_EXTENSIONS.get(mime_type.lower(), "png")
    guessed = mimetypes.guess_extension(mime_type.lower()) if mime_type else None
    return guessed.lstrip(".") if guessed else DEFAULT_VIDEO_EXTENSION


def _atomic_write(path: Path, data: bytes) -> None:
    """Writes to a temp file in the same directory and renames it into place."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class ArtifactStore:
    """
    On-disk artifact storage partitioned by media kind.

    Every artifact is written as ``<root>/<kind>s/<id>.<ext>`` with a JSON
    sidecar ``<root>/<kind>s/<id>.json``. Reads go through ``get`` (strict)
    or ``iter_records`` (skips unreadable sidecars).
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def kind_dir(self, kind: MediaKind) -> Path:
        return self.root / MEDIA_KIND_DIRS[kind]

    def initialize(self) -> None:
        """Creates the per-kind storage directories."""
        for kind in MEDIA_KIND_DIRS:
            directory = self.kind_dir(kind)
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageWriteError(
                    f"Failed to create storage directory {directory}: {e}",
                    path=str(directory),
                ) from e
        logger.info("Artifact storage ready at %s", self.root.absolute())

    def materialize(
        self,
        data: bytes,
        mime_type: str,
        prompt: str,
        kind: MediaKind,
        *,
        video_url: Optional[str] = None,
    ) -> ArtifactRecord:
        """
        Persists media bytes and their sidecar under a new id.

        Both files must be written; if the sidecar fails the media file is
        removed again and StorageWriteError is raised.
        """
        artifact_id = str(uuid.uuid4())
        directory = self.kind_dir(kind)
        media_path = (directory / f"{artifact_id}.{extension_for(kind, mime_type)}").absolute()

        try:
            directory.mkdir(parents=True, exist_ok=True)
            _atomic_write(media_path, data)
        except OSError as e:
            logger.error("Error saving generated %s: %s", kind, e)
            raise StorageWriteError(
                f"Failed to write {kind} file {media_path}: {e}",
                path=str(media_path),
            ) from e

        record = ArtifactRecord(
            id=artifact_id,
            media_kind=kind,
            prompt=prompt,
            mime_type=mime_type,
            size=len(data),
            filepath=str(media_path),
            video_url=video_url,
        )
        try:
            self._write_sidecar(record)
        except StorageWriteError:
            try:
                media_path.unlink()
            except OSError:
                logger.warning("Could not remove orphaned %s file %s", kind, media_path)
            raise

        logger.info("%s saved successfully with ID: %s", kind.capitalize(), artifact_id)
        return record

    def record_remote(self, prompt: str, mime_type: str, video_url: Optional[str]) -> ArtifactRecord:
        """Persists a sidecar for a video that was left on the provider side."""
        record = ArtifactRecord(
            id=str(uuid.uuid4()),
            media_kind="video",
            prompt=prompt,
            mime_type=mime_type,
            size=0,
            filepath=None,
            video_url=video_url,
        )
        self._write_sidecar(record)
        logger.info("Video reference recorded with ID: %s", record.id)
        return record

    def discard(self, record: ArtifactRecord) -> None:
        """Removes an artifact written earlier in a request that later failed."""
        paths = [self._sidecar_path(record.media_kind, record.id)]
        if record.filepath:
            paths.append(Path(record.filepath))
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove %s file %s", record.media_kind, path)
        logger.info("Discarded %s %s", record.media_kind, record.id)

    def _sidecar_path(self, kind: MediaKind, artifact_id: str) -> Path:
        return self.kind_dir(kind) / f"{artifact_id}.json"

    def _write_sidecar(self, record: ArtifactRecord) -> None:
        path = self._sidecar_path(record.media_kind, record.id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(path, record.to_sidecar_json().encode("utf-8"))
        except OSError as e:
            logger.error("Error saving metadata for %s %s: %s", record.media_kind, record.id, e)
            raise StorageWriteError(
                f"Failed to write metadata {path}: {e}",
                path=str(path),
            ) from e

    def get(self, kind: MediaKind, artifact_id: str) -> ArtifactRecord:
        path = self._sidecar_path(kind, artifact_id)
        if not is_safe_artifact_id(artifact_id) or not is_within(path, self.kind_dir(kind)):
            raise MetadataNotFoundError(kind, artifact_id)
        try:
            return self._load(path, kind)
        except (OSError, ValueError) as e:
            logger.error("Error getting metadata for %s %s: %s", kind, artifact_id, e)
            raise MetadataNotFoundError(kind, artifact_id) from e

    def iter_records(self, kind: MediaKind) -> Iterator[ArtifactRecord]:
        """
        Lazily yields every parseable sidecar of ``kind``.

        A sidecar that cannot be read or parsed is logged and skipped; it
        never aborts the iteration.
        """
        directory = self.kind_dir(kind)
        if not directory.exists():
            return
        for path in sorted(directory.glob("*.json")):
            try:
                yield self._load(path, kind)
            except (OSError, ValueError) as e:
                logger.warning("Skipping unreadable %s metadata file %s: %s", kind, path, e)

    def list_records(self, kind: MediaKind) -> List[ArtifactRecord]:
        records = list(self.iter_records(kind))
        records.sort(key=lambda record: record.created_at, reverse=True)
        return records

    def read_bytes(self, record: ArtifactRecord) -> Optional[bytes]:
        if not record.filepath:
            return None
        try:
            return Path(record.filepath).read_bytes()
        except OSError as e:
            logger.error("Error reading %s file %s: %s", record.media_kind, record.filepath, e)
            return None

    @staticmethod
    def _load(path: Path, kind: MediaKind) -> ArtifactRecord:
        raw = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            raw.setdefault("mediaKind", kind)
        try:
            record = ArtifactRecord.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid metadata in {path.name}: {e}") from e
        if record.media_kind != kind:
            raise ValueError(f"{path.name} describes a {record.media_kind}, not a {kind}")
        return record
