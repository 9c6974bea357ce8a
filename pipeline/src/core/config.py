import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.src.sprites.animation import DEFAULT_ANIM_ID_PARAMETER
from common.src.sprites.paths import normalize_path
from pipeline.src.core.exceptions import InvalidSettingsError

DEFAULT_CONFIG_PATH = Path("animpipe.yml")
ENV_PREFIX = "ANIMPIPE_"


class ArtifactFormat(str, Enum):
    """Encoding used by the file artifact store."""
    YAML = "yaml"
    MSGPACK = "msgpack"


def load_pipeline_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load pipeline configuration from a YAML file (animpipe.yml by default)"""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        if config_path:
            raise InvalidSettingsError(f"Config file not found: {path}")
        return {}

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidSettingsError(f"Config file {path} is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise InvalidSettingsError(f"Config file {path} must contain a mapping")

    # Settings may live at top level or under an "animation_pipeline" section
    if "animation_pipeline" not in data:
        return data
    section = data["animation_pipeline"] or {}
    if not isinstance(section, dict):
        raise InvalidSettingsError(f"Section 'animation_pipeline' in {path} must be a mapping")
    return section


class PipelineSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=".env", extra="ignore")

    # Scan
    sprite_root_folders: List[str] = Field(
        default_factory=lambda: ["Assets/Art/Characters"],
        description="Root folders scanned for frame assets",
    )

    # Output
    output_root_folder: str = Field(
        default="Assets/Animations/Characters",
        description="Folder receiving <Character>/<Character>_<Anim>.clip and .controller",
    )
    artifact_format: ArtifactFormat = ArtifactFormat.YAML

    # Clips
    default_frame_rate: float = Field(default=12.0, gt=0)
    loop_all_clips: bool = True

    # Controller
    anim_id_parameter_name: str = Field(
        default=DEFAULT_ANIM_ID_PARAMETER,
        description="Int parameter driving the controller: AnimId == anim_id(animation)",
    )

    # Logging settings
    log_level: str = "INFO"
    environment: str = Field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development"),
        description="production switches the logs to JSON lines",
    )

    @field_validator("sprite_root_folders")
    @classmethod
    def validate_sprite_root_folders(cls, value: List[str]) -> List[str]:
        folders = [normalize_path(folder.strip()) for folder in value if folder and folder.strip()]
        if not folders:
            raise ValueError("sprite_root_folders must name at least one folder")
        return folders

    @field_validator("output_root_folder")
    @classmethod
    def validate_output_root_folder(cls, value: str) -> str:
        folder = normalize_path(value.strip())
        if not folder:
            raise ValueError("output_root_folder must not be empty")
        return folder

    @field_validator("anim_id_parameter_name")
    @classmethod
    def validate_parameter_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("anim_id_parameter_name must not be empty")
        return name

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        return value.upper()


def load_settings(config_path: Optional[Union[str, Path]] = None, **overrides: Any) -> PipelineSettings:
    """
    Build settings from the YAML config file, environment and explicit overrides.

    Precedence: explicit overrides > ANIMPIPE_* environment variables > YAML file > defaults.

    Raises:
        InvalidSettingsError: If the file is missing/malformed or a value is invalid.
    """
    file_values = load_pipeline_config(config_path)

    values = {
        key: value for key, value in file_values.items()
        if f"{ENV_PREFIX}{key.upper()}" not in os.environ
    }
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return PipelineSettings(**values)
    except ValidationError as e:
        raise InvalidSettingsError(f"Invalid pipeline settings: {e}") from e


def write_default_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH, overwrite: bool = False) -> Path:
    """
    Write a config file holding the default settings.

    Returns the path written. Existing files are kept unless overwrite is set.
    """
    path = Path(path)
    if path.exists() and not overwrite:
        return path

    defaults = PipelineSettings.model_construct()
    data = {
        "animation_pipeline": {
            "sprite_root_folders": list(defaults.sprite_root_folders),
            "output_root_folder": defaults.output_root_folder,
            "artifact_format": ArtifactFormat.YAML.value,
            "default_frame_rate": defaults.default_frame_rate,
            "loop_all_clips": defaults.loop_all_clips,
            "anim_id_parameter_name": defaults.anim_id_parameter_name,
        }
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    return path

