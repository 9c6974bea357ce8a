#!/usr/bin/env python3
"""
Sprite animation pipeline command line.

Usage:
    # Write animpipe.yml with the default settings
    animpipe init-config

    # List detected characters and animation groups
    animpipe report

    # Build all clips and controllers (alphabetical default state)
    animpipe build

    # Check generated artifacts against the frame pool / the whole output root
    animpipe validate
    animpipe validate --project

    # Re-link controller states that lost their clip, then re-validate
    animpipe fix

    # Dump the keyframes of one generated clip
    animpipe inspect Assets/Animations/Characters/Hero/Hero_Walk.clip

Environment:
    ANIMPIPE_*   Overrides for any setting (e.g. ANIMPIPE_DEFAULT_FRAME_RATE=24)
    LOG_LEVEL    Logging level (default INFO)
    LOG_FORMAT   "json" for JSON log lines
    ENVIRONMENT  "production" for JSON log lines (ANIMPIPE_ENVIRONMENT or the config wins)
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from pipeline.src.core.config import (
    DEFAULT_CONFIG_PATH,
    PipelineSettings,
    load_settings,
    write_default_config,
)
from pipeline.src.core.exceptions import ArtifactDecodeError, InvalidSettingsError, StoreTransactionError
from pipeline.src.core.logging_config import get_logger, setup_logging
from pipeline.src.services.build_service import BuildService
from pipeline.src.services.frame_grouper import collect_frames
from pipeline.src.services.report_service import ReportTool
from pipeline.src.services.validation_service import PipelineValidator
from pipeline.src.store.file_store import FileArtifactStore

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="animpipe",
        description="Compile sprite frames into animation clips and controllers",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Config file (default: {DEFAULT_CONFIG_PATH} when present)",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path("."),
        help="Directory all configured folders are relative to",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override the configured log level",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser("init-config", help="Write a config file with the default settings")
    init.add_argument("--force", action="store_true", help="Overwrite an existing config file")

    commands.add_parser("report", help="Report detected characters and animation groups")
    commands.add_parser("build", help="Build all clips and controllers")

    validate = commands.add_parser("validate", help="Validate generated artifacts")
    validate.add_argument(
        "--project",
        action="store_true",
        help="Check every artifact under the output root instead of the frame pool",
    )

    commands.add_parser("fix", help="Assign missing state motions, then validate")

    inspect = commands.add_parser("inspect", help="Print the keyframes of a generated clip")
    inspect.add_argument("clip", help="Clip path relative to the project root")

    return parser


def cmd_init_config(args: argparse.Namespace) -> int:
    path = args.config or (args.project_root / DEFAULT_CONFIG_PATH)
    existed = path.exists()
    write_default_config(path, overwrite=args.force)
    if existed and not args.force:
        print(f"Config already exists: {path} (use --force to overwrite)")
    else:
        print(f"Config written: {path}")
    return EXIT_OK


def cmd_report(store: FileArtifactStore, settings: PipelineSettings) -> int:
    frames = collect_frames(store, settings.sprite_root_folders)
    print(ReportTool().format_report(frames))
    return EXIT_OK


def cmd_build(store: FileArtifactStore, settings: PipelineSettings) -> int:
    report = BuildService(store, settings).build_all()
    print(report.summary())
    return EXIT_OK if report.ok else EXIT_FAILURES


def cmd_validate(store: FileArtifactStore, settings: PipelineSettings, project_wide: bool) -> int:
    validator = PipelineValidator(store, settings)
    issues = validator.validate_project() if project_wide else validator.validate()

    if not issues:
        print("Validation OK: 0 issues")
        return EXIT_OK

    print(f"Validation FAILED: {len(issues)} issue(s).")
    print("Fix: run 'animpipe build' (or 'animpipe fix' for states without motion)")
    print("Details:")
    for issue in issues:
        print(f"- {issue}")
    return EXIT_FAILURES


def cmd_fix(store: FileArtifactStore, settings: PipelineSettings) -> int:
    report = PipelineValidator(store, settings).auto_fix()
    print(report.summary())
    return EXIT_OK if report.remaining_issue_count == 0 else EXIT_FAILURES


def cmd_inspect(store: FileArtifactStore, clip_path: str) -> int:
    try:
        clip = store.load_clip(clip_path)
    except ArtifactDecodeError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return EXIT_FAILURES

    if clip is None:
        print(f"ERROR: No clip at {clip_path}", file=sys.stderr)
        return EXIT_FAILURES

    print(ReportTool().format_clip(clip_path, clip))
    if clip.keyframe_count == 0:
        logger.warning("Clip has no keyframes", extra={"path": clip_path})
        return EXIT_FAILURES
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        0 when clean, 1 when failures or issues remain, 2 on configuration errors.
    """
    args = build_parser().parse_args(argv)

    if args.command == "init-config":
        return cmd_init_config(args)

    config_path = args.config
    if config_path is None and (args.project_root / DEFAULT_CONFIG_PATH).exists():
        config_path = args.project_root / DEFAULT_CONFIG_PATH

    try:
        settings = load_settings(config_path, log_level=args.log_level)
    except InvalidSettingsError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(settings.log_level, settings.environment)
    store = FileArtifactStore(args.project_root, settings.artifact_format)

    try:
        if args.command == "report":
            return cmd_report(store, settings)
        if args.command == "build":
            return cmd_build(store, settings)
        if args.command == "validate":
            return cmd_validate(store, settings, args.project)
        if args.command == "fix":
            return cmd_fix(store, settings)
        if args.command == "inspect":
            return cmd_inspect(store, args.clip)
    except StoreTransactionError as e:
        logger.error("Run aborted", extra={"error": e.message})
        print(f"ERROR: {e.message}", file=sys.stderr)
        return EXIT_FAILURES

    return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
