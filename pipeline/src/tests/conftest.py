import pytest
from typing import Callable, Iterable, List, Optional

from common.src.sprites.animation import Clip, FrameAsset
from common.src.sprites.paths import normalize_path
from pipeline.src.core.config import PipelineSettings
from pipeline.src.store.artifact_store import InMemoryArtifactStore

SPRITE_FOLDER = "Assets/Sprites"
OUTPUT_FOLDER = "Assets/Generated"


class FlakyArtifactStore(InMemoryArtifactStore):
    """
    In-memory store that loses keyframes on some clip saves.

    Simulates the host store dropping the first keyframe write of a freshly
    created clip.

    Args:
        drop_first: Number of clip saves (counted across all paths) that are
            persisted with zero keyframes.
        always_drop: Path fragments whose clip saves always lose their keyframes.
    """

    def __init__(self, drop_first: int = 0, always_drop: Iterable[str] = ()):
        super().__init__()
        self.drop_first = drop_first
        self.always_drop = tuple(always_drop)
        self.clip_saves = 0

    def save_clip(self, path: str, clip: Clip) -> None:
        self.clip_saves += 1
        drop = self.clip_saves <= self.drop_first or any(part in path for part in self.always_drop)
        if drop:
            clip = Clip(
                character=clip.character,
                animation=clip.animation,
                frame_rate=clip.frame_rate,
                loop=clip.loop,
            )
        super().save_clip(path, clip)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from ANIMPIPE_* variables."""
    for var in (
        "ANIMPIPE_DEFAULT_FRAME_RATE",
        "ANIMPIPE_OUTPUT_ROOT_FOLDER",
        "ANIMPIPE_ARTIFACT_FORMAT",
        "ANIMPIPE_ENVIRONMENT",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings() -> PipelineSettings:
    """Pipeline settings with explicit test folders."""
    return PipelineSettings(
        sprite_root_folders=[SPRITE_FOLDER],
        output_root_folder=OUTPUT_FOLDER,
        default_frame_rate=12.0,
        loop_all_clips=True,
        anim_id_parameter_name="AnimId",
    )


@pytest.fixture
def store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


@pytest.fixture
def make_frames() -> Callable[..., List[FrameAsset]]:
    """Factory building frame assets from names."""

    def _make_frames(*names: str, folder: str = SPRITE_FOLDER) -> List[FrameAsset]:
        folder = normalize_path(folder)
        return [FrameAsset(name=name, handle=f"{folder}/{name}.png") for name in names]

    return _make_frames


@pytest.fixture
def stocked_store(store, make_frames) -> Callable[..., InMemoryArtifactStore]:
    """Factory putting frames into the sprite folder of the in-memory store."""

    def _stock(*names: str, target: Optional[InMemoryArtifactStore] = None) -> InMemoryArtifactStore:
        target = target if target is not None else store
        target.add_frames(SPRITE_FOLDER, make_frames(*names))
        return target

    return _stock


@pytest.fixture
def flaky_store() -> Callable[..., FlakyArtifactStore]:
    """Factory for stores that drop clip keyframes."""

    def _flaky_store(drop_first: int = 0, always_drop: Iterable[str] = ()) -> FlakyArtifactStore:
        return FlakyArtifactStore(drop_first=drop_first, always_drop=always_drop)

    return _flaky_store
