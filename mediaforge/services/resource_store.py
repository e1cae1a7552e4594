"""Resource storage collaborators.

:class:`ResourceStore` is the narrow interface the image service talks to.
:class:`LocalResourceStore` is a filesystem implementation that stores blobs
content-addressed by SHA1 under one directory per collection.
"""

from __future__ import annotations

import io
import os
import shutil
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Optional, Union

from ..utils.hashing import sha1_of_bytes
from ..utils.logging import get_logger

logger = get_logger("mediaforge.resource_store")

ResourceSource = Union[str, Path, bytes, bytearray, BinaryIO]

DEFAULT_COLLECTION = "persistent"


@dataclass
class Resource:
    """A stored blob plus the filename it is published under."""
    sha1: str
    filename: str
    collection_name: str = DEFAULT_COLLECTION

    @property
    def file_extension(self) -> str:
        return Path(self.filename).suffix.lstrip(".").lower()

    @property
    def cache_entry_identifier(self) -> str:
        return self.sha1


class ResourceStore(ABC):
    """Interface of the blob store used by the image service."""

    @abstractmethod
    def import_resource(
        self,
        source: ResourceSource,
        collection_name: str = DEFAULT_COLLECTION,
        filename: Optional[str] = None
    ) -> Optional[Resource]:
        """Import data from a path, bytes or stream; None signals failure."""

    @abstractmethod
    def create_temporary_local_copy(self, resource: Resource) -> Path:
        """Return a local filesystem path holding the resource data."""

    @abstractmethod
    def get_stream(self, resource: Resource) -> BinaryIO:
        """Open the resource data for reading."""

    def get_file_extension(self, resource: Resource) -> str:
        return resource.file_extension

    def get_sha1(self, resource: Resource) -> str:
        return resource.sha1


class LocalResourceStore(ResourceStore):
    """Filesystem backed resource store.

    Temporary local copies accumulate until :meth:`cleanup` or :meth:`close`
    is called; use the store as a context manager to tie them to a scope.
    A temp directory created by the store itself is removed on close.
    """

    def __init__(self, base_dir: Union[str, Path], temp_dir: Optional[Union[str, Path]] = None):
        """Initialize the store.

        Args:
            base_dir: Directory holding one subdirectory per collection
            temp_dir: Directory for temporary local copies (default: system temp)
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._owns_temp_dir = not temp_dir
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.mkdtemp(prefix="mediaforge-copies-"))
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._temporary_copies: Dict[str, Path] = {}

    def _blob_path(self, sha1: str, collection_name: str) -> Path:
        return self.base_dir / collection_name / sha1

    def import_resource(
        self,
        source: ResourceSource,
        collection_name: str = DEFAULT_COLLECTION,
        filename: Optional[str] = None
    ) -> Optional[Resource]:
        try:
            if isinstance(source, (bytes, bytearray)):
                data = bytes(source)
            elif isinstance(source, (str, Path)):
                data = Path(source).read_bytes()
                filename = filename or Path(source).name
            else:
                data = source.read()
        except OSError as exc:
            logger.error(f"Could not read resource source: {exc}")
            return None

        sha1 = sha1_of_bytes(data)
        target = self._blob_path(sha1, collection_name)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if not target.exists():
                fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".import-")
                try:
                    with os.fdopen(fd, "wb") as handle:
                        handle.write(data)
                    os.replace(tmp_name, target)
                except OSError:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
        except OSError as exc:
            logger.error(f"Could not store resource {sha1} in {collection_name}: {exc}")
            return None

        logger.debug(f"Imported resource {sha1} ({len(data)} bytes) into {collection_name}")
        return Resource(sha1=sha1, filename=filename or sha1, collection_name=collection_name)

    def create_temporary_local_copy(self, resource: Resource) -> Path:
        """Copy the blob into the temp directory, reusing an earlier copy."""
        key = f"{resource.collection_name}/{resource.sha1}"
        with self._lock:
            existing = self._temporary_copies.get(key)
            if existing is not None and existing.exists():
                return existing
            suffix = f".{resource.file_extension}" if resource.file_extension else ""
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            copy_path = self.temp_dir / f"{resource.sha1}{suffix}"
            shutil.copyfile(self._blob_path(resource.sha1, resource.collection_name), copy_path)
            self._temporary_copies[key] = copy_path
            return copy_path

    def get_stream(self, resource: Resource) -> BinaryIO:
        return io.BytesIO(self._blob_path(resource.sha1, resource.collection_name).read_bytes())

    def exists(self, resource: Resource) -> bool:
        return self._blob_path(resource.sha1, resource.collection_name).exists()

    def cleanup(self) -> None:
        """Remove all temporary local copies."""
        with self._lock:
            for path in self._temporary_copies.values():
                try:
                    path.unlink()
                except FileNotFoundError:
                    pass
            self._temporary_copies.clear()

    def close(self) -> None:
        """Remove temporary copies and the temp directory if the store created it."""
        self.cleanup()
        if self._owns_temp_dir:
            shutil.rmtree(self.temp_dir, ignore_errors=True)

    def __enter__(self) -> "LocalResourceStore":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
