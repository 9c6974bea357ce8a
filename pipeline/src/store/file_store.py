"""
Filesystem-backed artifact store.

Frames are image files below the configured sprite folders, named by their
file stem. Clips and controllers are written as YAML documents or msgpack
blobs. Each output folder keeps a small manifest that is rebuilt once per
batch instead of after every write.
"""

import os
import posixpath
from pathlib import Path
from typing import List, Optional, Set, Union

import msgpack
import yaml

from common.src.sprites.animation import Clip, Controller, FrameAsset
from common.src.sprites.paths import normalize_path
from pipeline.src.core.config import ArtifactFormat
from pipeline.src.core.exceptions import ArtifactDecodeError, StoreTransactionError
from pipeline.src.core.logging_config import get_logger
from pipeline.src.store.artifact_store import ArtifactStore, CLIP_KIND, CONTROLLER_KIND

logger = get_logger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tga", ".psd", ".webp"}
MANIFEST_NAME = ".animpipe-index.yaml"
ARTIFACT_VERSION = 1

# First byte of a msgpack map (fixmap, map16, map32)
_MSGPACK_MAP_BYTES = set(range(0x80, 0x90)) | {0xDE, 0xDF}


class FileArtifactStore(ArtifactStore):
    """
    Artifact store rooted at a project directory.

    Args:
        project_root: Directory all store paths are relative to.
        artifact_format: Encoding for newly written artifacts. Both encodings
            are readable regardless of this setting.
    """

    def __init__(
        self,
        project_root: Union[str, Path],
        artifact_format: ArtifactFormat = ArtifactFormat.YAML,
    ):
        super().__init__()
        self.project_root = Path(project_root)
        self.artifact_format = ArtifactFormat(artifact_format)
        self._dirty_folders: Set[str] = set()

    def _resolve(self, path: str) -> Path:
        return self.project_root / normalize_path(path)

    def _relative(self, file_path: Path) -> str:
        return file_path.relative_to(self.project_root).as_posix()

    # -------------------------------------------------------------------------
    # Batching
    # -------------------------------------------------------------------------

    def _begin_batch(self) -> None:
        if not self.project_root.is_dir():
            raise StoreTransactionError(f"Project root does not exist: {self.project_root}")
        if not os.access(self.project_root, os.W_OK):
            raise StoreTransactionError(f"Project root is not writable: {self.project_root}")
        self._dirty_folders.clear()

    def _end_batch(self) -> None:
        for folder in sorted(self._dirty_folders):
            self._write_manifest(folder)
        logger.debug("Batch closed", extra={"folders_reindexed": len(self._dirty_folders)})
        self._dirty_folders.clear()

    def _mark_dirty(self, folder: str) -> None:
        if self.in_batch:
            self._dirty_folders.add(folder)
        else:
            self._write_manifest(folder)

    def _write_manifest(self, folder: str) -> None:
        folder_path = self._resolve(folder)
        if not folder_path.is_dir():
            return
        entries = sorted(
            child.name for child in folder_path.iterdir()
            if child.is_file() and child.name != MANIFEST_NAME and not child.name.endswith(".tmp")
        )
        with open(folder_path / MANIFEST_NAME, "w", encoding="utf-8") as f:
            yaml.safe_dump({"folder": folder, "artifacts": entries}, f, sort_keys=False)

    def read_manifest(self, folder: str) -> List[str]:
        manifest = self._resolve(folder) / MANIFEST_NAME
        if not manifest.exists():
            return []
        with open(manifest, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return list(data.get("artifacts") or [])

    # -------------------------------------------------------------------------
    # Folders and frames
    # -------------------------------------------------------------------------

    def is_valid_folder(self, folder: str) -> bool:
        return self._resolve(folder).is_dir()

    def ensure_folder(self, folder: str) -> None:
        self._resolve(folder).mkdir(parents=True, exist_ok=True)

    def find_frames(self, folder: str) -> List[FrameAsset]:
        root = self._resolve(folder)
        if not root.is_dir():
            return []
        return [
            FrameAsset(name=file_path.stem, handle=self._relative(file_path))
            for file_path in sorted(root.rglob("*"))
            if file_path.is_file() and file_path.suffix.lower() in IMAGE_EXTENSIONS
        ]

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    def _encode(self, kind: str, data: dict) -> bytes:
        document = {"kind": kind, "version": ARTIFACT_VERSION, "data": data}
        if self.artifact_format == ArtifactFormat.MSGPACK:
            return msgpack.packb(document, use_bin_type=True)
        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True).encode("utf-8")

    def _decode(self, path: str, raw: bytes, kind: str) -> dict:
        if not raw:
            raise ArtifactDecodeError(path, "file is empty")
        try:
            if raw[0] in _MSGPACK_MAP_BYTES:
                document = msgpack.unpackb(raw, raw=False)
            else:
                document = yaml.safe_load(raw.decode("utf-8"))
        except (msgpack.exceptions.ExtraData, msgpack.exceptions.FormatError, ValueError, yaml.YAMLError) as e:
            raise ArtifactDecodeError(path, str(e)) from e

        if not isinstance(document, dict) or not isinstance(document.get("data"), dict):
            raise ArtifactDecodeError(path, "missing artifact data")
        if document.get("kind") != kind:
            raise ArtifactDecodeError(path, f"expected {kind}, found {document.get('kind')}")
        return document["data"]

    def _read(self, path: str, kind: str) -> Optional[dict]:
        file_path = self._resolve(path)
        if not file_path.is_file():
            return None
        return self._decode(path, file_path.read_bytes(), kind)

    def _write(self, path: str, kind: str, data: dict) -> None:
        file_path = self._resolve(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = file_path.with_name(file_path.name + ".tmp")
        tmp_path.write_bytes(self._encode(kind, data))
        os.replace(tmp_path, file_path)
        self._mark_dirty(posixpath.dirname(normalize_path(path)))

    # -------------------------------------------------------------------------
    # Artifacts
    # -------------------------------------------------------------------------

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def load_clip(self, path: str) -> Optional[Clip]:
        data = self._read(path, CLIP_KIND)
        if data is None:
            return None
        try:
            return Clip.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ArtifactDecodeError(path, f"invalid clip data: {e}") from e

    def save_clip(self, path: str, clip: Clip) -> None:
        self._write(path, CLIP_KIND, clip.to_dict())

    def load_controller(self, path: str) -> Optional[Controller]:
        data = self._read(path, CONTROLLER_KIND)
        if data is None:
            return None
        try:
            return Controller.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ArtifactDecodeError(path, f"invalid controller data: {e}") from e

    def save_controller(self, path: str, controller: Controller) -> None:
        self._write(path, CONTROLLER_KIND, controller.to_dict())

    def delete(self, path: str) -> bool:
        file_path = self._resolve(path)
        if not file_path.is_file():
            return False
        file_path.unlink()
        self._mark_dirty(posixpath.dirname(normalize_path(path)))
        return True

    def list_artifacts(self, root: str, suffix: str) -> List[str]:
        root_path = self._resolve(root)
        if not root_path.is_dir():
            return []
        suffix = suffix.lower()
        return sorted(
            self._relative(file_path)
            for file_path in root_path.rglob("*")
            if file_path.is_file() and file_path.name.lower().endswith(suffix)
        )
