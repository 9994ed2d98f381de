"""
Blob savers — hand downloaded report bytes to the local machine.

The save follows an object-URL lifecycle:
1. create: stage the bytes under a temporary, process-local reference
2. click: publish the staged bytes under the suggested file name, by hard
   link where the filesystem supports it and by exclusive copy otherwise
3. revoke: release the temporary reference, always after the click

A save either publishes a complete file or leaves nothing behind.
Version: 1.0.0
"""
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from navimed_reports.schemas.reports import Blob

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".navimed-download-"
STAGING_SUFFIX = ".part"


def safe_file_name(suggested_name: str) -> str:
    """Strip any directory part so a server-provided name cannot escape the target dir."""
    name = os.path.basename(suggested_name.replace("\\", "/")).strip()
    if name in ("", ".", ".."):
        raise ValueError(f"Unusable file name: {suggested_name!r}")
    return name


class BlobSaver:
    """Capability interface for saving a downloaded blob."""

    def save(self, blob: Blob, suggested_name: str) -> Path:
        raise NotImplementedError


class FileBlobSaver(BlobSaver):
    """Saves blobs into a download directory, never overwriting existing files."""

    def __init__(self, download_dir: str) -> None:
        self._download_dir = Path(download_dir)

    @property
    def download_dir(self) -> Path:
        return self._download_dir

    def save(self, blob: Blob, suggested_name: str) -> Path:
        name = safe_file_name(suggested_name)
        self._download_dir.mkdir(parents=True, exist_ok=True)

        object_url = self._create_object_url(blob)
        try:
            target = self._click(object_url, name)
        finally:
            self._revoke_object_url(object_url)

        logger.info(f"Saved {blob.size} bytes to {target}")
        return target

    def _create_object_url(self, blob: Blob) -> Path:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=self._download_dir,
            prefix=STAGING_PREFIX,
            suffix=STAGING_SUFFIX,
            delete=False,
        ) as f:
            f.write(blob.data)
            staged = Path(f.name)
        return staged

    def _click(self, object_url: Path, name: str) -> Path:
        """Publish the staged file under the first free variant of ``name``."""
        stem, ext = os.path.splitext(name)
        counter = 0
        while True:
            candidate = name if counter == 0 else f"{stem} ({counter}){ext}"
            target = self._download_dir / candidate
            try:
                self._publish(object_url, target)
                return target
            except FileExistsError:
                counter += 1

    def _publish(self, object_url: Path, target: Path) -> None:
        """Hard-link ``object_url`` to ``target``, copying where links are unsupported.

        Raises FileExistsError when ``target`` is taken.
        """
        try:
            os.link(object_url, target)
            return
        except FileExistsError:
            raise
        except OSError as e:
            logger.debug(f"Hard link unavailable in {self._download_dir} ({e}); copying instead")

        dst = open(target, "xb")
        try:
            with dst, open(object_url, "rb") as src:
                shutil.copyfileobj(src, dst)
        except OSError:
            target.unlink(missing_ok=True)
            raise

    def _revoke_object_url(self, object_url: Path) -> None:
        try:
            object_url.unlink()
        except FileNotFoundError:
            pass


@dataclass
class RecordingBlobSaver(BlobSaver):
    """
    In-memory saver that records the lifecycle calls.

    ``events`` holds ("create" | "click" | "revoke", name) tuples in order.
    """
    saved: List[Tuple[str, Blob]] = field(default_factory=list)
    events: List[Tuple[str, str]] = field(default_factory=list)

    def save(self, blob: Blob, suggested_name: str) -> Path:
        self.events.append(("create", suggested_name))
        try:
            self.events.append(("click", suggested_name))
            self.saved.append((suggested_name, blob))
        finally:
            self.events.append(("revoke", suggested_name))
        return Path(suggested_name)

    def count(self, event: str) -> int:
        return sum(1 for kind, _ in self.events if kind == event)
