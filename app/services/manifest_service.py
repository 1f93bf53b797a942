"""
Manifest Service - Walk an instance directory and build a hash-annotated file list
"""

import errno
import hashlib
import os
import stat
import time
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from anyio import to_thread

from app.core.errors import (
    AccessDenied,
    Cancelled,
    InvalidEntry,
    IOFailure,
    ManifestError,
    NotFound,
)
from app.schemas.config import ManifestSettings, SymlinkPolicy
from app.schemas.manifest import FileEntry, Manifest
from app.utils.logger import setup_logger

logger = setup_logger("Terra.Manifest")

CancelCheck = Callable[[], bool]


def hash_file(file_path: Path, algorithm: str = "sha1", chunk_size: int = 65536) -> str:
    """
    Stream the whole file through `algorithm` and return the lower-case hex digest.
    OSError is left to the caller.
    """
    hasher = hashlib.new(algorithm)
    with open(file_path, "rb") as f:
        for byte_block in iter(lambda: f.read(chunk_size), b""):
            hasher.update(byte_block)
    return hasher.hexdigest()


def normalize_relative_path(root: Path, file_path: Path) -> str:
    """
    Path of `file_path` relative to `root`, joined with "/" whatever the host separator.

    Raises:
        ValueError: if `file_path` is not below `root`.
    """
    relative = Path(file_path).relative_to(root)
    return "/".join(relative.parts)


def _translate_os_error(exc: OSError, instance: str, relative_path: str) -> ManifestError:
    where = relative_path or "<root>"
    if isinstance(exc, FileNotFoundError):
        if not relative_path:
            return NotFound(f"Instance '{instance}' not found", instance, relative_path)
        return NotFound(f"'{where}' disappeared during the scan", instance, relative_path)
    if isinstance(exc, PermissionError):
        return AccessDenied(f"'{where}' cannot be read", instance, relative_path)
    return IOFailure(f"I/O error on '{where}': {exc.strerror or type(exc).__name__}", instance, relative_path)


class ManifestBuilder:
    """
    Builds a Manifest for one instance root.

    One builder can serve many concurrent calls: `build` keeps all of its state
    in locals. Policy on failure is to abort, so a returned manifest is always
    complete. A file rewritten while it is being hashed may yield a digest that
    matches neither version; no locking is attempted.
    """

    def __init__(self, settings: Optional[ManifestSettings] = None):
        self.settings = settings or ManifestSettings()

    def build(self, instance: str, root: Path, should_cancel: Optional[CancelCheck] = None) -> Manifest:
        root = Path(root)
        started = time.perf_counter()

        try:
            root_stat = os.stat(root)
        except OSError as e:
            raise _translate_os_error(e, instance, "") from e
        if not stat.S_ISDIR(root_stat.st_mode):
            raise InvalidEntry("Instance root is not a directory", instance, "")

        real_root = Path(os.path.realpath(root))
        entries: List[FileEntry] = []

        # (directory, identities of the directories above it, itself included)
        root_id = (root_stat.st_dev, root_stat.st_ino)
        stack: List[Tuple[Path, frozenset]] = [(root, frozenset([root_id]))]

        while stack:
            directory, ancestors = stack.pop()
            subdirs = []

            for child in self._list_directory(directory, root, instance):
                # Bỏ qua file/thư mục ẩn (.git, .DS_Store, ...)
                if child.name.startswith("."):
                    continue

                if should_cancel is not None and should_cancel():
                    raise Cancelled("Manifest build was cancelled", instance)

                child_path = Path(child.path)
                relative_path = normalize_relative_path(root, child_path)
                if "\\" in child.name:
                    raise InvalidEntry(
                        f"'{relative_path}' contains a backslash and cannot be listed portably",
                        instance, relative_path,
                    )

                try:
                    if child.is_symlink():
                        child_stat = self._resolve_symlink(child_path, real_root, instance, relative_path)
                        if child_stat is None:
                            continue
                    else:
                        child_stat = child.stat(follow_symlinks=False)
                except OSError as e:
                    raise _translate_os_error(e, instance, relative_path) from e

                if stat.S_ISDIR(child_stat.st_mode):
                    identity = (child_stat.st_dev, child_stat.st_ino)
                    if identity in ancestors:
                        logger.warning(f"[Manifest] {instance}: symlink loop at '{relative_path}', not descending")
                        continue
                    subdirs.append((child_path, ancestors | {identity}))
                elif stat.S_ISREG(child_stat.st_mode):
                    entries.append(self._file_entry(child_path, child_stat, instance, relative_path))
                else:
                    raise InvalidEntry(f"'{relative_path}' is not a regular file or directory", instance, relative_path)

            # Đảo ngược để thư mục có tên nhỏ nhất được duyệt trước
            stack.extend(reversed(subdirs))

        entries.sort(key=lambda e: e.path.encode("utf-8", "surrogateescape"))

        logger.debug(
            f"[Manifest] {instance}: {len(entries)} files hashed with {self.settings.hash_algorithm} "
            f"in {time.perf_counter() - started:.3f}s"
        )
        return Manifest(instance=instance, algorithm=self.settings.hash_algorithm, files=tuple(entries))

    def _list_directory(self, directory: Path, root: Path, instance: str) -> list:
        try:
            with os.scandir(directory) as it:
                children = list(it)
        except OSError as e:
            relative_path = "" if directory == root else normalize_relative_path(root, directory)
            raise _translate_os_error(e, instance, relative_path) from e
        # Sibling order must not depend on the filesystem
        children.sort(key=lambda c: c.name)
        return children

    def _resolve_symlink(self, link_path: Path, real_root: Path, instance: str, relative_path: str):
        """Apply the symlink policy. Returns the target's stat, or None when the link is skipped."""
        policy = self.settings.symlink_policy

        if policy == SymlinkPolicy.reject:
            raise InvalidEntry(f"'{relative_path}' is a symbolic link", instance, relative_path)

        if policy == SymlinkPolicy.skip:
            logger.debug(f"[Manifest] {instance}: skip symlink '{relative_path}'")
            return None

        target = Path(os.path.realpath(link_path))
        if target != real_root and real_root not in target.parents:
            raise InvalidEntry(f"'{relative_path}' points outside the instance", instance, relative_path)
        try:
            return os.stat(link_path)
        except FileNotFoundError as e:
            raise InvalidEntry(f"'{relative_path}' is a dangling symbolic link", instance, relative_path) from e
        except OSError as e:
            if e.errno == errno.ELOOP:
                raise InvalidEntry(f"'{relative_path}' is a symbolic link loop", instance, relative_path) from e
            raise

    def _file_entry(self, file_path: Path, file_stat: os.stat_result, instance: str, relative_path: str) -> FileEntry:
        try:
            file_hash = hash_file(file_path, self.settings.hash_algorithm, self.settings.chunk_size)
        except OSError as e:
            raise _translate_os_error(e, instance, relative_path) from e

        size = file_stat.st_size if self.settings.include_size else None
        modified_at = None
        if self.settings.include_modified_at:
            modified_at = datetime.fromtimestamp(file_stat.st_mtime, tz=timezone.utc)

        return FileEntry(path=relative_path, hash=file_hash, size=size, modified_at=modified_at)


def build_manifest(
    instance: str,
    root: Path,
    settings: Optional[ManifestSettings] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> Manifest:
    """Build the manifest of `root`, published to clients under the name `instance`."""
    return ManifestBuilder(settings).build(instance, root, should_cancel)


async def build_manifest_async(
    instance: str,
    root: Path,
    settings: Optional[ManifestSettings] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> Manifest:
    """
    Same as build_manifest, run in a worker thread so hashing does not block the event loop.
    """
    return await to_thread.run_sync(partial(build_manifest, instance, root, settings, should_cancel))
