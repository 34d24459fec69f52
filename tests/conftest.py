"""
Shared pytest fixtures for git-hours tests.
"""

import git
import pandas as pd
import pytest

from githours.timeline import CommitRecord
from githours.timestamps import normalize_timestamp

ALICE = ("Alice Example", "alice@example.com")
BOB = ("Bob Example", "bob@example.com")

# the session example: 0 + 30m + 1h30m + 10m + 1h (capped) = 3h10m
SESSION_TIMES = [
    "2024-03-04 09:00:00 +0000",
    "2024-03-04 09:30:00 +0000",
    "2024-03-04 11:00:00 +0000",
    "2024-03-04 11:10:00 +0000",
    "2024-03-04 15:00:00 +0000",
]


def _as_timestamp(value):
    return normalize_timestamp(value) if isinstance(value, str) else pd.Timestamp(value)


def make_record(author_time, commit_time=None, author="Alice Example", subject="work", identity=None):
    """Builds a CommitRecord from ISO strings, commit time defaulting to author time."""
    author_ts = _as_timestamp(author_time)
    commit_ts = _as_timestamp(commit_time) if commit_time is not None else author_ts
    return CommitRecord(author_ts, commit_ts, author, subject, identity)


def commit_at(grepo, message, author_date, committer_date=None, author=ALICE):
    env = {
        "GIT_AUTHOR_NAME": author[0],
        "GIT_AUTHOR_EMAIL": author[1],
        "GIT_AUTHOR_DATE": author_date,
        "GIT_COMMITTER_DATE": committer_date or author_date,
    }
    grepo.git.commit("--allow-empty", m=message, env=env)
    return grepo.head.commit.hexsha


@pytest.fixture
def records():
    return [make_record(t, identity=f"c{i}") for i, t in enumerate(SESSION_TIMES)]


@pytest.fixture
def session_repo(tmp_path):
    """A repository with Alice's five session commits and one commit by Bob."""
    repo_dir = tmp_path / "session_repo"
    repo_dir.mkdir()
    grepo = git.Repo.init(str(repo_dir))
    grepo.config_writer().set_value("user", "name", "Test User").release()
    grepo.config_writer().set_value("user", "email", "test@example.com").release()

    for i, when in enumerate(SESSION_TIMES):
        commit_at(grepo, f"alice change {i}", when)
    commit_at(grepo, "bob change", "2024-03-05 10:00:00 +0000", author=BOB)

    return repo_dir


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
