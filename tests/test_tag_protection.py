"""Tests for pre-push tag protection."""

from tagflow.domain import TagKind
from tagflow.services.tag_protection import (
    ZERO_SHA,
    check_push,
    parse_hook_lines,
    tag_from_ref,
)

SHA = "c" * 40


class TestParseHookLines:

    def test_tag_refs_only(self):
        lines = [
            f"refs/heads/main {SHA} refs/heads/main {ZERO_SHA}\n",
            f"refs/tags/v1.0.0 {SHA} refs/tags/v1.0.0 {ZERO_SHA}\n",
            f"refs/tags/production {SHA} refs/tags/production {SHA}\n",
        ]
        assert parse_hook_lines(lines) == [("v1.0.0", False), ("production", False)]

    def test_deletion(self):
        lines = [f"(delete) {ZERO_SHA} refs/tags/staging {SHA}"]
        assert parse_hook_lines(lines) == [("staging", True)]

    def test_malformed_lines_ignored(self):
        assert parse_hook_lines(["", "garbage", "a b c"]) == []

    def test_tag_from_ref(self):
        assert tag_from_ref("refs/tags/api/v1.0.0") == "api/v1.0.0"
        assert tag_from_ref("+refs/tags/staging:refs/tags/staging") == "staging"
        assert tag_from_ref("refs/heads/main") is None


class TestCheckPush:

    def test_environment_tag_rejected(self, naming):
        report = check_push([("production", False), ("v1.0.0", False)], naming)
        assert not report.allowed
        assert [c.tag_name for c in report.rejected] == ["production"]
        assert report.rejected[0].kind is TagKind.ENVIRONMENT

    def test_subproject_environment_tag_rejected(self, naming):
        report = check_push([("services/api/staging", False)], naming)
        assert not report.allowed

    def test_environment_leaf_under_any_prefix_rejected(self, naming):
        report = check_push([("hotfix@1/production", False), ("a//staging", False)], naming)
        assert not report.allowed
        assert [c.tag_name for c in report.rejected] == ["hotfix@1/production", "a//staging"]
        assert all(c.kind is TagKind.ENVIRONMENT for c in report.rejected)

    def test_override(self, naming):
        report = check_push([("production", False)], naming, allow_protected=True)
        assert report.allowed
        assert report.checks[0].reason == "override"

    def test_version_and_state_allowed(self, naming):
        report = check_push([("v1.2.3", False), ("api/v1.2.3-stable", False)], naming)
        assert report.allowed
        assert [c.kind for c in report.checks] == [TagKind.VERSION, TagKind.STATE]

    def test_unrecognized_allowed_with_warning(self, naming):
        report = check_push([("nightly-2024", False)], naming)
        assert report.allowed
        assert report.checks[0].kind is None
        assert report.checks[0].reason == "unrecognized pattern"

    def test_to_dict(self, naming):
        report = check_push([("staging", True)], naming)
        assert report.checks[0].to_dict() == {
            'tag_name': 'staging',
            'kind': 'environment',
            'allowed': False,
            'deleting': True,
            'reason': 'environment tags must be assigned by the tag assignment pipeline',
        }
