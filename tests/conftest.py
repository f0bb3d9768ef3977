"""Shared fixtures for tagflow tests."""

import os
import shutil
import subprocess

import pytest

from tagflow.domain import TagNaming
from tagflow.infra import InMemoryReferenceStore
from tagflow.services import TagRepository

C1 = "1111111111111111111111111111111111111111"
C2 = "2222222222222222222222222222222222222222"
C3 = "3333333333333333333333333333333333333333"
C4 = "4444444444444444444444444444444444444444"
C5 = "5555555555555555555555555555555555555555"

_ISOLATED_PREFIXES = ('TAGFLOW_', 'CI_TEST_')
_ISOLATED_NAMES = (
    'CI_TEST_MODE',
    'GITHUB_WORKFLOW',
    'GITHUB_OUTPUT',
    'GITHUB_ACTOR',
    'GITHUB_RUN_ID',
    'ALLOW_PROTECTED_TAG_PUSH',
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep user config and CI variables out of every test."""
    for key in list(os.environ):
        if key.startswith(_ISOLATED_PREFIXES) or key in _ISOLATED_NAMES:
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / 'home'
    home.mkdir()
    monkeypatch.setenv('HOME', str(home))
    work = tmp_path / 'work'
    work.mkdir()
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def naming():
    return TagNaming()


@pytest.fixture
def store():
    """Store with five known commits and HEAD at C5."""
    return InMemoryReferenceStore(commits=[C1, C2, C3, C4, C5], head=C5)


@pytest.fixture
def repository(store, naming):
    return TagRepository(store, naming)


def _git(cwd, *args):
    return subprocess.run(
        ['git', *args], cwd=cwd, check=True, capture_output=True, text=True
    ).stdout.strip()


@pytest.fixture
def git_repo(tmp_path):
    """
    A clone with two commits and a bare ``origin``.

    Returns:
        (clone_path, [first_commit, second_commit])
    """
    if shutil.which('git') is None:
        pytest.skip("git is not installed")

    remote = tmp_path / 'origin.git'
    clone = tmp_path / 'clone'
    _git(tmp_path, 'init', '--bare', str(remote))
    _git(tmp_path, 'init', str(clone))
    _git(clone, 'config', 'user.email', 'ci@example.com')
    _git(clone, 'config', 'user.name', 'CI')
    _git(clone, 'config', 'commit.gpgsign', 'false')
    _git(clone, 'config', 'tag.gpgsign', 'false')
    _git(clone, 'remote', 'add', 'origin', str(remote))

    commits = []
    for i in range(2):
        (clone / 'file.txt').write_text(f"revision {i}\n")
        _git(clone, 'add', 'file.txt')
        _git(clone, 'commit', '-m', f"commit {i}")
        commits.append(_git(clone, 'rev-parse', 'HEAD'))
    return clone, commits


@pytest.fixture
def git():
    """Run git in a directory and return stripped stdout."""
    return _git
