"""Tests for deployment status and tag consistency checks."""

import pytest

from tagflow.domain import Semver, TagKind, TagState
from tagflow.services import TagStatusService
from tagflow.services.tag_status import (
    ENVIRONMENT_UNTAGGED_COMMIT,
    STATE_COMMIT_MISMATCH,
    STATE_WITHOUT_VERSION,
)

from conftest import C1, C2, C3, C4, C5


@pytest.fixture
def service(repository):
    return TagStatusService(repository)


@pytest.fixture
def tagged(store):
    store.tags.update({
        'v1.0.0': C1,
        'v1.0.0-stable': C1,
        'v1.0.0-deprecated': C1,
        'v1.1.0': C2,
        'v1.1.0-unstable': C2,
        'v2.0.0': C3,
        'production': C2,
        'staging': C3,
    })
    return store


class TestStatus:

    def test_environment_rows_first(self, service, tagged, naming):
        rows = service.status()
        envs = [r for r in rows if r.kind is TagKind.ENVIRONMENT]
        assert [r.environment for r in envs] == list(naming.environments)
        assert rows[:len(envs)] == envs

    def test_environment_version_and_state(self, service, tagged):
        rows = {r.tag_name: r for r in service.status()}
        production = rows['production']
        assert production.commit == C2
        assert production.version == Semver.parse("1.1.0")
        assert production.state is TagState.UNSTABLE

        staging = rows['staging']
        assert staging.version == Semver.parse("2.0.0")
        assert staging.state is TagState.NONE

    def test_untagged_environment_has_no_commit(self, service, tagged):
        canary = {r.tag_name: r for r in service.status()}['canary']
        assert canary.commit is None
        assert canary.version is None
        assert canary.state is TagState.NONE

    def test_preferred_state_reported(self, service, tagged):
        rows = {r.tag_name: r for r in service.status()}
        assert rows['v1.0.0'].state is TagState.STABLE

    def test_recent_versions_newest_first(self, service, tagged):
        versions = [r.tag_name for r in service.status(recent=2) if r.kind is TagKind.VERSION]
        assert versions == ['v2.0.0', 'v1.1.0']

    def test_recent_zero(self, service, tagged):
        assert all(r.kind is TagKind.ENVIRONMENT for r in service.status(recent=0))

    def test_environment_on_commit_with_two_versions(self, service, store):
        store.tags.update({'v1.0.0': C4, 'v1.0.1': C4, 'sandbox': C4})
        sandbox = {r.tag_name: r for r in service.status()}['sandbox']
        assert sandbox.version == Semver.parse("1.0.1")

    def test_subproject_scoped(self, service, tagged):
        tagged.tags.update({'services/api/v0.3.0': C4, 'services/api/production': C4})
        rows = {r.tag_name: r for r in service.status('services/api')}
        assert rows['services/api/production'].version == Semver.parse("0.3.0")
        assert rows['services/api/production'].subproject == 'services/api'
        assert 'production' not in rows
        assert 'v2.0.0' not in rows

    def test_to_dict(self, service, tagged):
        row = {r.tag_name: r for r in service.status()}['production'].to_dict()
        assert row == {
            'tag_name': 'production',
            'kind': 'environment',
            'environment': 'production',
            'version': '1.1.0',
            'state': 'unstable',
            'commit': C2,
            'subproject': None,
        }


class TestValidate:

    def test_consistent(self, service, tagged):
        assert service.validate() == []

    def test_empty_store(self, service):
        assert service.validate() == []

    def test_state_without_version(self, service, tagged):
        tagged.tags['v3.0.0-stable'] = C4
        issues = service.validate()
        assert [(i.tag_name, i.problem) for i in issues] == [
            ('v3.0.0-stable', STATE_WITHOUT_VERSION),
        ]
        assert 'v3.0.0' in issues[0].message

    def test_state_on_other_commit(self, service, tagged):
        tagged.tags['v2.0.0-stable'] = C1
        issues = service.validate()
        assert [(i.tag_name, i.problem, i.commit) for i in issues] == [
            ('v2.0.0-stable', STATE_COMMIT_MISMATCH, C1),
        ]

    def test_environment_on_untagged_commit(self, service, tagged):
        tagged.tags['canary'] = C5
        issues = service.validate()
        assert [(i.tag_name, i.problem, i.kind) for i in issues] == [
            ('canary', ENVIRONMENT_UNTAGGED_COMMIT, TagKind.ENVIRONMENT),
        ]

    def test_all_problems_reported(self, service, tagged):
        tagged.tags.update({
            'v3.0.0-stable': C4,
            'v2.0.0-stable': C1,
            'canary': C5,
        })
        problems = {i.tag_name: i.problem for i in service.validate()}
        assert problems == {
            'v3.0.0-stable': STATE_WITHOUT_VERSION,
            'v2.0.0-stable': STATE_COMMIT_MISMATCH,
            'canary': ENVIRONMENT_UNTAGGED_COMMIT,
        }

    def test_other_subproject_ignored(self, service, tagged):
        tagged.tags['services/api/staging'] = C5
        assert service.validate() == []
        problems = [i.problem for i in service.validate('services/api')]
        assert problems == [ENVIRONMENT_UNTAGGED_COMMIT]

    def test_issues_logged(self, service, tagged, caplog):
        tagged.tags['canary'] = C5
        with caplog.at_level('WARNING', logger='tagflow'):
            service.validate()
        assert 'untagged commit' in caplog.text
