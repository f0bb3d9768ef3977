"""Tests for semantic versions."""

import pytest

from tagflow.domain import Ordering, Semver, compare_versions, normalize_version, parse_semver
from tagflow.domain.errors import InvalidSemver


class TestParse:
    """Tests for Semver.parse."""

    def test_plain_version(self):
        v = Semver.parse("1.2.3")
        assert (v.major, v.minor, v.patch, v.prerelease) == (1, 2, 3, None)

    def test_leading_v_is_optional(self):
        assert Semver.parse("v1.2.3") == Semver.parse("1.2.3")

    def test_prerelease(self):
        v = Semver.parse("2.0.0-rc.1")
        assert v.prerelease == "rc.1"
        assert v.is_prerelease

    @pytest.mark.parametrize("text", [
        "", "1", "1.2", "1.2.3.4", "a.b.c", "1.2.3-", "1.2.3-rc_1", "V1.2.3", "vv1.2.3",
        " 1.2.3 ", "1.2.3\n",
    ])
    def test_invalid(self, text):
        with pytest.raises(InvalidSemver):
            Semver.parse(text)

    def test_non_string_rejected(self):
        with pytest.raises(InvalidSemver):
            Semver.parse(None)

    def test_module_helpers(self):
        assert parse_semver("v3.1.4") == Semver(3, 1, 4)
        assert normalize_version("v3.1.4-beta") == "3.1.4-beta"


class TestFormat:
    """Tests for formatting."""

    def test_format_has_no_prefix(self):
        assert Semver(1, 2, 3).format() == "1.2.3"
        assert Semver(1, 2, 3, "alpha").format() == "1.2.3-alpha"

    def test_tag_has_prefix(self):
        assert Semver(1, 2, 3).tag == "v1.2.3"
        assert str(Semver(0, 1, 0)) == "0.1.0"

    def test_parse_format_round_trip(self):
        for text in ("0.0.1", "10.20.30", "1.0.0-rc.1", "1.0.0-x-y.z"):
            assert Semver.parse(text).format() == text

    def test_to_dict(self):
        d = Semver(1, 2, 3, "rc.1").to_dict()
        assert d == {
            'version': '1.2.3-rc.1', 'major': 1, 'minor': 2, 'patch': 3, 'prerelease': 'rc.1',
        }


class TestOrdering:
    """Tests for the total order."""

    def test_numeric_not_lexical(self):
        assert Semver.parse("1.10.0") > Semver.parse("1.9.0")
        assert Semver.parse("2.0.0") > Semver.parse("1.99.99")

    def test_release_beats_prerelease(self):
        assert Semver.parse("1.0.0") > Semver.parse("1.0.0-rc.1")
        assert compare_versions(Semver.parse("1.0.0-rc.1"), Semver.parse("1.0.0")) is Ordering.LESS

    def test_prereleases_compare_as_strings(self):
        assert Semver.parse("1.0.0-beta") > Semver.parse("1.0.0-alpha")
        assert Semver.parse("1.0.0-rc.2") > Semver.parse("1.0.0-rc.10")

    def test_equal(self):
        assert compare_versions(Semver.parse("v1.0.0"), Semver.parse("1.0.0")) is Ordering.EQUAL

    def test_sorting_is_total(self):
        texts = ["1.0.0", "0.9.0", "1.0.0-rc.1", "1.1.0", "1.0.1", "1.0.0-beta"]
        ordered = [v.format() for v in sorted(Semver.parse(t) for t in texts)]
        assert ordered == ["0.9.0", "1.0.0-beta", "1.0.0-rc.1", "1.0.0", "1.0.1", "1.1.0"]

    def test_antisymmetric(self):
        a, b = Semver.parse("1.2.3"), Semver.parse("1.2.4")
        assert a.compare(b) is Ordering.LESS
        assert b.compare(a) is Ordering.GREATER


class TestBump:
    """Tests for Semver.bump."""

    def test_bump_parts(self):
        v = Semver.parse("1.2.3-rc.1")
        assert v.bump("major") == Semver(2, 0, 0)
        assert v.bump("minor") == Semver(1, 3, 0)
        assert v.bump("patch") == Semver(1, 2, 4)

    def test_bump_invalid_part(self):
        with pytest.raises(ValueError):
            Semver(1, 0, 0).bump("build")
