"""
Unit tests for PipelineValidator.

Validation results are reported as Issue objects, never raised.
"""

import pytest

from common.src.sprites.animation import Clip, Controller
from pipeline.src.schemas.reports import IssueKind
from pipeline.src.services.build_service import BuildService
from pipeline.src.services.validation_service import PipelineValidator

CONTROLLER_PATH = "Assets/Generated/Hero/Hero.controller"
WALK_CLIP = "Assets/Generated/Hero/Hero_Walk.clip"
IDLE_CLIP = "Assets/Generated/Hero/Hero_Idle.clip"


@pytest.fixture
def hero_frames(make_frames):
    return make_frames("Hero_Idle_1", "Hero_Idle_2", "Hero_Walk_1", "Hero_Walk_2")


@pytest.fixture
def built_store(store, settings, hero_frames):
    """Store holding a clean build of the hero frames."""
    report = BuildService(store, settings).build_all(hero_frames)
    assert report.ok
    return store


@pytest.fixture
def validator(built_store, settings):
    return PipelineValidator(built_store, settings)


def clear_motion(store, state_name):
    controller = store.load_controller(CONTROLLER_PATH)
    controller.find_state(state_name).motion = None
    store.save_controller(CONTROLLER_PATH, controller)


def kinds(issues):
    return [issue.kind for issue in issues]


class TestValidate:
    """Tests for validate() against the frame pool."""

    def test_clean_build(self, validator, hero_frames):
        assert validator.validate(hero_frames) == []

    def test_missing_motion_reported_once(self, built_store, validator, hero_frames):
        """A state without motion yields exactly one missing-motion issue."""
        clear_motion(built_store, "Walk")

        issues = validator.validate(hero_frames)

        assert kinds(issues) == [IssueKind.MISSING_MOTION]
        assert issues[0].character == "Hero"
        assert issues[0].name == "Walk"
        assert issues[0].location == CONTROLLER_PATH

    def test_missing_clip_and_dangling_motion(self, built_store, validator, hero_frames):
        built_store.delete(WALK_CLIP)

        issues = validator.validate(hero_frames)

        assert kinds(issues) == [IssueKind.MISSING_CLIP, IssueKind.DANGLING_MOTION]
        assert issues[0].location == WALK_CLIP

    def test_missing_controller(self, built_store, validator, hero_frames):
        built_store.delete(CONTROLLER_PATH)

        issues = validator.validate(hero_frames)

        assert kinds(issues) == [IssueKind.MISSING_CONTROLLER]

    def test_empty_clip(self, built_store, validator, hero_frames):
        built_store.save_clip(IDLE_CLIP, Clip(character="Hero", animation="Idle"))

        issues = validator.validate(hero_frames)

        assert kinds(issues) == [IssueKind.EMPTY_CLIP]
        assert "0 keyframes" in issues[0].reason

    def test_unreadable_artifacts(self, built_store, validator, hero_frames):
        built_store.save_controller(IDLE_CLIP, Controller(character="Hero"))
        built_store.save_clip(CONTROLLER_PATH, Clip(character="Hero", animation="Oops"))

        issues = validator.validate(hero_frames)

        assert kinds(issues) == [IssueKind.UNREADABLE_ARTIFACT, IssueKind.UNREADABLE_ARTIFACT]
        assert [issue.location for issue in issues] == [CONTROLLER_PATH, IDLE_CLIP]

    def test_new_frames_without_artifacts(self, validator, hero_frames, make_frames):
        frames = hero_frames + make_frames("Slime_Bounce_1")

        issues = validator.validate(frames)

        assert kinds(issues) == [IssueKind.MISSING_CONTROLLER, IssueKind.MISSING_CLIP]
        assert {issue.character for issue in issues} == {"Slime"}

    def test_frames_default_to_configured_folders(self, built_store, settings, hero_frames):
        built_store.add_frames(settings.sprite_root_folders[0], hero_frames)
        clear_motion(built_store, "Idle")

        issues = PipelineValidator(built_store, settings).validate()

        assert kinds(issues) == [IssueKind.MISSING_MOTION]

    def test_anim_id_collision(self, validator, hero_frames, monkeypatch):
        monkeypatch.setattr("pipeline.src.services.validation_service.anim_id", lambda name: 7)

        issues = validator.validate(hero_frames)

        assert kinds(issues) == [IssueKind.ANIM_ID_COLLISION]
        assert "Idle" in issues[0].reason and "Walk" in issues[0].reason

    def test_clip_path_collision(self, store, settings, hero_frames, make_frames):
        frames = hero_frames + make_frames("Hero_Run Fast_1", "Hero_Run Fast_2", "Hero_Run_Fast_1")
        assert BuildService(store, settings).build_all(frames).ok

        issues = PipelineValidator(store, settings).validate(frames)

        assert kinds(issues) == [IssueKind.CLIP_PATH_COLLISION]
        assert issues[0].name == "Run_Fast"
        assert issues[0].location == "Assets/Generated/Hero/Hero_Run_Fast.clip"
        assert "Run Fast" in issues[0].reason

    def test_issue_string(self, built_store, validator, hero_frames):
        clear_motion(built_store, "Walk")

        issue = validator.validate(hero_frames)[0]

        assert str(issue) == f"[missing_motion] 'Hero/Walk': State 'Walk' has no motion => {CONTROLLER_PATH}"


class TestValidateProject:
    """Tests for validate_project() over the whole output root."""

    def test_clean_project(self, validator):
        assert validator.validate_project() == []

    def test_stale_character_found_without_frames(self, built_store, validator):
        built_store.save_clip("Assets/Generated/Ghost/Ghost_Float.clip", Clip(character="Ghost", animation="Float"))

        issues = validator.validate_project()

        assert kinds(issues) == [IssueKind.EMPTY_CLIP]
        assert issues[0].character == "Ghost"
        assert issues[0].name == "Float"

    def test_dangling_motion(self, built_store, validator):
        built_store.delete(IDLE_CLIP)

        issues = validator.validate_project()

        assert kinds(issues) == [IssueKind.DANGLING_MOTION]
        assert issues[0].location == IDLE_CLIP

    def test_clip_path_collision(self, built_store, validator):
        controller = built_store.load_controller(CONTROLLER_PATH)
        controller.find_or_add_state("Run Fast").motion = IDLE_CLIP
        controller.find_or_add_state("Run:Fast").motion = IDLE_CLIP
        built_store.save_controller(CONTROLLER_PATH, controller)

        issues = validator.validate_project()

        assert kinds(issues) == [IssueKind.CLIP_PATH_COLLISION]
        assert issues[0].name == "Run:Fast"
        assert issues[0].location == "Assets/Generated/Hero/Hero_Run_Fast.clip"


class TestAutoFix:
    """Tests for auto_fix()."""

    def test_assigns_missing_motion_from_existing_clip(self, built_store, validator, hero_frames):
        clear_motion(built_store, "Walk")

        report = validator.auto_fix(hero_frames)

        assert report.controllers_scanned == 1
        assert report.controllers_fixed == 1
        assert report.states_fixed == 1
        assert report.remaining_issue_count == 0
        assert built_store.load_controller(CONTROLLER_PATH).find_state("Walk").motion == WALK_CLIP

    def test_no_clip_nothing_fabricated(self, built_store, validator, hero_frames):
        clear_motion(built_store, "Walk")
        built_store.delete(WALK_CLIP)

        report = validator.auto_fix(hero_frames)

        assert report.states_fixed == 0
        assert report.controllers_fixed == 0
        assert not built_store.exists(WALK_CLIP)
        assert kinds(report.remaining_issues) == [IssueKind.MISSING_CLIP, IssueKind.MISSING_MOTION]

    def test_empty_clip_not_assigned(self, built_store, validator, hero_frames):
        clear_motion(built_store, "Walk")
        built_store.save_clip(WALK_CLIP, Clip(character="Hero", animation="Walk"))

        report = validator.auto_fix(hero_frames)

        assert report.states_fixed == 0
        assert IssueKind.MISSING_MOTION in kinds(report.remaining_issues)

    def test_runs_in_one_batch(self, built_store, validator, hero_frames):
        opened = built_store.batches_opened
        clear_motion(built_store, "Walk")
        clear_motion(built_store, "Idle")

        report = validator.auto_fix(hero_frames)

        assert report.states_fixed == 2
        assert built_store.batches_opened == opened + 1
        assert built_store.batches_closed == built_store.batches_opened

    def test_summary(self, built_store, validator, hero_frames):
        clear_motion(built_store, "Walk")

        summary = validator.auto_fix(hero_frames).summary()

        assert f"- Hero/Walk -> {WALK_CLIP}" in summary
        assert summary.endswith("Remaining issues: 0")
