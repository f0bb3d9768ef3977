"""Tests for execution mode resolution."""

import pytest

from tagflow.domain.errors import UnknownExecutionMode
from tagflow.services import ExecutionMode, ExecutionModeResolver, ModeSource
from tagflow.services.execution_mode import normalize_name, parse_mode


class TestParseMode:

    @pytest.mark.parametrize("value,expected", [
        ("EXECUTE", ExecutionMode.EXECUTE),
        ("dry_run", ExecutionMode.DRY_RUN),
        ("dry-run", ExecutionMode.DRY_RUN),
        ("PASS", ExecutionMode.SIMULATE_PASS),
        ("fail", ExecutionMode.SIMULATE_FAIL),
        ("SKIP", ExecutionMode.SKIP),
        ("TIMEOUT", ExecutionMode.SIMULATE_TIMEOUT),
        (" simulate_timeout ", ExecutionMode.SIMULATE_TIMEOUT),
    ])
    def test_known(self, value, expected):
        assert parse_mode(value) is expected

    def test_unknown(self):
        with pytest.raises(UnknownExecutionMode) as exc:
            parse_mode("MAYBE", source="CI_TEST_MODE")
        assert "CI_TEST_MODE" in str(exc.value)

    def test_mode_properties(self):
        assert ExecutionMode.EXECUTE.mutates
        assert not ExecutionMode.DRY_RUN.mutates
        assert ExecutionMode.DRY_RUN.touches_store
        assert not ExecutionMode.SIMULATE_PASS.touches_store


class TestNormalizeName:

    def test_normalize(self):
        assert normalize_name("Release / Tag Assignment") == "RELEASE_TAG_ASSIGNMENT"
        assert normalize_name("tag_assignment") == "TAG_ASSIGNMENT"
        assert normalize_name("--ci--") == "CI"


class TestPrecedence:
    """The most specific non-empty scope wins; nothing is merged."""

    def resolve(self, values, pipeline="release"):
        return ExecutionModeResolver.for_operation(
            "tag_assignment", pipeline=pipeline, values=values
        ).resolve()

    def test_default_is_execute(self):
        resolution = self.resolve({})
        assert resolution.mode is ExecutionMode.EXECUTE
        assert resolution.source == "default"

    def test_global(self):
        assert self.resolve({"CI_TEST_MODE": "DRY_RUN"}).mode is ExecutionMode.DRY_RUN

    def test_operation_beats_global(self):
        values = {
            "CI_TEST_MODE": "DRY_RUN",
            "CI_TEST_TAG_ASSIGNMENT_BEHAVIOR": "SKIP",
        }
        assert self.resolve(values).mode is ExecutionMode.SKIP

    def test_pipeline_beats_operation(self):
        values = {
            "CI_TEST_MODE": "DRY_RUN",
            "CI_TEST_TAG_ASSIGNMENT_BEHAVIOR": "SKIP",
            "CI_TEST_RELEASE_TAG_ASSIGNMENT_BEHAVIOR": "PASS",
        }
        resolution = self.resolve(values)
        assert resolution.mode is ExecutionMode.SIMULATE_PASS
        assert "CI_TEST_RELEASE_TAG_ASSIGNMENT_BEHAVIOR" in resolution.source

    def test_empty_value_falls_through(self):
        values = {
            "CI_TEST_RELEASE_TAG_ASSIGNMENT_BEHAVIOR": "  ",
            "CI_TEST_MODE": "FAIL",
        }
        assert self.resolve(values).mode is ExecutionMode.SIMULATE_FAIL

    def test_other_pipeline_ignored(self):
        values = {"CI_TEST_DEPLOY_TAG_ASSIGNMENT_BEHAVIOR": "SKIP"}
        assert self.resolve(values).mode is ExecutionMode.EXECUTE

    def test_pipeline_from_github_workflow(self):
        values = {
            "GITHUB_WORKFLOW": "Release Pipeline",
            "CI_TEST_RELEASE_PIPELINE_TAG_ASSIGNMENT_BEHAVIOR": "SKIP",
        }
        assert self.resolve(values, pipeline=None).mode is ExecutionMode.SKIP

    def test_no_pipeline_scope_without_pipeline(self):
        resolver = ExecutionModeResolver.for_operation("tag_assignment", values={})
        assert [s.name for s in resolver.sources] == ["operation", "global"]

    def test_unknown_value_in_winning_scope(self):
        with pytest.raises(UnknownExecutionMode):
            self.resolve({"CI_TEST_TAG_ASSIGNMENT_BEHAVIOR": "sometimes", "CI_TEST_MODE": "SKIP"})

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("CI_TEST_MODE", "SKIP")
        resolver = ExecutionModeResolver.for_operation("tag_assignment")
        assert resolver.resolve().mode is ExecutionMode.SKIP


class TestCustomSources:

    def test_explicit_sources(self):
        resolver = ExecutionModeResolver([
            ModeSource("cli", "mode", {"mode": ""}),
            ModeSource("file", "mode", {"mode": "dry-run"}),
        ])
        resolution = resolver.resolve()
        assert resolution.mode is ExecutionMode.DRY_RUN
        assert resolution.source == "file scope mode"

    def test_custom_default(self):
        resolver = ExecutionModeResolver([], default=ExecutionMode.DRY_RUN)
        assert resolver.resolve().mode is ExecutionMode.DRY_RUN
