"""
Artifact store abstraction.

The pipeline never touches a global asset database. Every service receives an
ArtifactStore, which provides folder enumeration, frame lookup, typed
artifact load/save/delete and batch bracketing.
"""

import posixpath
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from common.src.sprites.animation import Clip, Controller, FrameAsset
from common.src.sprites.paths import normalize_path
from pipeline.src.core.exceptions import ArtifactDecodeError, StoreTransactionError
from pipeline.src.core.logging_config import get_logger

logger = get_logger(__name__)

CLIP_KIND = "clip"
CONTROLLER_KIND = "controller"


class ArtifactStore(ABC):
    """
    Persistent store of named, typed artifacts.

    Paths are forward-slash store paths relative to the project root.
    Subclasses implement storage; batching is handled here so that nested
    batch() scopes only open and close the underlying transaction once.
    """

    def __init__(self):
        self._batch_depth = 0

    # -------------------------------------------------------------------------
    # Batching
    # -------------------------------------------------------------------------

    @property
    def in_batch(self) -> bool:
        return self._batch_depth > 0

    @contextmanager
    def batch(self) -> Iterator["ArtifactStore"]:
        """
        Bracket a group of writes (start/stop editing).

        Raises:
            StoreTransactionError: If the batch cannot be opened or closed.
        """
        if self._batch_depth == 0:
            try:
                self._begin_batch()
            except OSError as e:
                raise StoreTransactionError(f"Cannot open batch: {e}") from e
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                try:
                    self._end_batch()
                except OSError as e:
                    raise StoreTransactionError(f"Cannot close batch: {e}") from e

    def _begin_batch(self) -> None:
        """Hook called when the outermost batch opens."""

    def _end_batch(self) -> None:
        """Hook called when the outermost batch closes."""

    # -------------------------------------------------------------------------
    # Folders and frames
    # -------------------------------------------------------------------------

    @abstractmethod
    def is_valid_folder(self, folder: str) -> bool:
        ...

    @abstractmethod
    def ensure_folder(self, folder: str) -> None:
        ...

    @abstractmethod
    def find_frames(self, folder: str) -> List[FrameAsset]:
        """All frame assets in `folder` and its subfolders."""

    # -------------------------------------------------------------------------
    # Artifacts
    # -------------------------------------------------------------------------

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def load_clip(self, path: str) -> Optional[Clip]:
        """
        Load a clip.

        Returns:
            The persisted clip, or None when no artifact exists at `path`.

        Raises:
            ArtifactDecodeError: If an artifact exists but is not a readable clip.
        """

    @abstractmethod
    def save_clip(self, path: str, clip: Clip) -> None:
        ...

    @abstractmethod
    def load_controller(self, path: str) -> Optional[Controller]:
        ...

    @abstractmethod
    def save_controller(self, path: str, controller: Controller) -> None:
        ...

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete an artifact. Returns False when nothing was there."""

    @abstractmethod
    def list_artifacts(self, root: str, suffix: str) -> List[str]:
        """Sorted paths of artifacts below `root` whose name ends with `suffix`."""

    def count_clip_keyframes(self, path: str) -> int:
        """
        Read back the keyframe count of a persisted clip.

        Missing and undecodable clips count as 0.
        """
        try:
            clip = self.load_clip(path)
        except ArtifactDecodeError as e:
            logger.warning("Clip could not be read back", extra={"path": path, "error": e.reason})
            return 0
        return clip.keyframe_count if clip is not None else 0


class InMemoryArtifactStore(ArtifactStore):
    """
    Dict-backed store used by tests and embedding tools.

    Artifacts are kept in their serialized dict form, so loading always
    returns a fresh object and callers never share state with stored data.
    """

    def __init__(self):
        super().__init__()
        self._folders: Set[str] = set()
        self._frames: Dict[str, List[FrameAsset]] = {}
        self._artifacts: Dict[str, Tuple[str, dict]] = {}
        self.batches_opened = 0
        self.batches_closed = 0
        self.save_counts: Dict[str, int] = {}
        self.delete_counts: Dict[str, int] = {}

    def _begin_batch(self) -> None:
        self.batches_opened += 1

    def _end_batch(self) -> None:
        self.batches_closed += 1

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def add_frames(self, folder: str, frames: Iterable[FrameAsset]) -> None:
        folder = normalize_path(folder)
        self.ensure_folder(folder)
        self._frames.setdefault(folder, []).extend(frames)

    def paths(self) -> List[str]:
        return sorted(self._artifacts)

    # -------------------------------------------------------------------------
    # Folders and frames
    # -------------------------------------------------------------------------

    def is_valid_folder(self, folder: str) -> bool:
        return normalize_path(folder) in self._folders

    def ensure_folder(self, folder: str) -> None:
        folder = normalize_path(folder)
        while folder and folder not in ("/", "."):
            self._folders.add(folder)
            folder = posixpath.dirname(folder)

    def find_frames(self, folder: str) -> List[FrameAsset]:
        folder = normalize_path(folder)
        prefix = folder + "/"
        frames: List[FrameAsset] = []
        for key in sorted(self._frames):
            if key == folder or key.startswith(prefix):
                frames.extend(self._frames[key])
        return frames

    # -------------------------------------------------------------------------
    # Artifacts
    # -------------------------------------------------------------------------

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._artifacts

    def _load(self, path: str, kind: str) -> Optional[dict]:
        entry = self._artifacts.get(normalize_path(path))
        if entry is None:
            return None
        stored_kind, data = entry
        if stored_kind != kind:
            raise ArtifactDecodeError(path, f"expected {kind}, found {stored_kind}")
        return data

    def _save(self, path: str, kind: str, data: dict) -> None:
        path = normalize_path(path)
        self.ensure_folder(posixpath.dirname(path))
        self._artifacts[path] = (kind, data)
        self.save_counts[path] = self.save_counts.get(path, 0) + 1

    def load_clip(self, path: str) -> Optional[Clip]:
        data = self._load(path, CLIP_KIND)
        return Clip.from_dict(data) if data is not None else None

    def save_clip(self, path: str, clip: Clip) -> None:
        self._save(path, CLIP_KIND, clip.to_dict())

    def load_controller(self, path: str) -> Optional[Controller]:
        data = self._load(path, CONTROLLER_KIND)
        return Controller.from_dict(data) if data is not None else None

    def save_controller(self, path: str, controller: Controller) -> None:
        self._save(path, CONTROLLER_KIND, controller.to_dict())

    def delete(self, path: str) -> bool:
        path = normalize_path(path)
        if path not in self._artifacts:
            return False
        del self._artifacts[path]
        self.delete_counts[path] = self.delete_counts.get(path, 0) + 1
        return True

    def list_artifacts(self, root: str, suffix: str) -> List[str]:
        prefix = normalize_path(root) + "/"
        suffix = suffix.lower()
        return sorted(
            path for path in self._artifacts
            if path.startswith(prefix) and path.lower().endswith(suffix)
        )
