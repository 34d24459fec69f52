import git
import pandas as pd
import pytest

from githours import EstimationConfig, Repository
from githours.repository import log_arguments, retrieval_modes

from conftest import BOB, commit_at


def make_config(**kwargs):
    return EstimationConfig(since="2024-03-01", before="2024-04-01", **kwargs)


@pytest.fixture
def repo(session_repo):
    return Repository(working_dir=session_repo)


class TestQueries:
    def test_log_arguments(self):
        """The log query carries format, dates and range."""
        args = log_arguments(make_config(), "--all")
        assert args == [
            "--all",
            "--date=iso-local",
            "--pretty=format:%H|%ad|%cd|%an|%s",
            "--since=2024-03-01",
            "--before=2024-04-01",
        ]

    def test_log_arguments_with_authors(self):
        """Several authors are passed as one alternation."""
        args = log_arguments(make_config(authors=("Adam", "Jon")))
        assert r"--author=\(Adam\)\|\(Jon\)" in args

    @pytest.mark.parametrize(
        "all_branches,reflog,expected",
        [
            (False, False, [()]),
            (True, False, [("--all",)]),
            (False, True, [("--walk-reflogs",)]),
            (True, True, [("--all",), ("--walk-reflogs", "--all")]),
        ],
    )
    def test_retrieval_modes(self, all_branches, reflog, expected):
        """The switches select up to two queries."""
        assert retrieval_modes(make_config(all_branches=all_branches, reflog=reflog)) == expected


class TestCommitTimeline:
    def test_oldest_first(self, repo):
        """Commits come back oldest first."""
        timeline = repo.commit_timeline(make_config())
        assert len(timeline) == 6
        times = [r.author_time for r in timeline]
        assert times == sorted(times)
        assert timeline[0].subject == "alice change 0"
        assert timeline[-1].author_name == "Bob Example"

    def test_author_filter(self, repo):
        """The author filter is applied by git."""
        timeline = repo.commit_timeline(make_config(authors=("Alice",)))
        assert timeline.authors() == ["Alice Example"]
        assert len(timeline) == 5

    def test_several_authors(self, repo):
        """Several author names match either author."""
        timeline = repo.commit_timeline(make_config(authors=("Alice", "Bob")))
        assert len(timeline) == 6

    def test_date_range(self, repo):
        """The since bound excludes earlier commits."""
        timeline = repo.commit_timeline(
            EstimationConfig(since="2024-03-05 00:00:00 +0000", before="2024-04-01 00:00:00 +0000")
        )
        assert [r.author_name for r in timeline] == ["Bob Example"]

    def test_all_branches(self, session_repo):
        """--all picks up commits on other branches."""
        grepo = git.Repo(str(session_repo))
        main_branch = grepo.active_branch.name
        grepo.git.checkout("-b", "feature")
        commit_at(grepo, "feature work", "2024-03-04 15:20:00 +0000")
        grepo.git.checkout(main_branch)

        repo = Repository(working_dir=session_repo)
        assert len(repo.commit_timeline(make_config())) == 6
        assert len(repo.commit_timeline(make_config(all_branches=True))) == 7

    def test_all_branches_and_reflog_deduplicate(self, repo):
        """Commits seen by both queries are counted once."""
        timeline = repo.commit_timeline(make_config(all_branches=True, reflog=True))
        identities = [r.identity for r in timeline]
        assert len(identities) == len(set(identities)) == 6


class TestHoursEstimate:
    def test_total(self, repo):
        """The whole repository is estimated across authors."""
        # Alice's session is 3h10m, Bob's commit the next morning adds one capped gap
        assert repo.hours_estimate(make_config()).total == pd.Timedelta(hours=4, minutes=10)

    def test_single_author_session(self, repo):
        """One author's session gives the expected total and periods."""
        estimate = repo.hours_estimate(make_config(authors=("Alice",), emit_periods=True))
        assert estimate.total == pd.Timedelta(hours=3, minutes=10)
        assert [p.duration for p in estimate.periods] == [pd.Timedelta(hours=2, minutes=10), pd.Timedelta(0)]

    def test_empty_range(self, repo):
        """A range without commits gives zero."""
        estimate = repo.hours_estimate(
            EstimationConfig(since="2020-01-01", before="2020-02-01", emit_periods=True)
        )
        assert estimate.total == pd.Timedelta(0)
        assert estimate.periods == ()

    def test_commit_authored_before_its_parent(self, session_repo):
        """Commits are ordered by author time, not history order."""
        grepo = git.Repo(str(session_repo))
        # authored before Bob's earlier commit, committed after it; sorting by author time puts it first
        commit_at(grepo, "rebased", "2024-03-05 09:00:00 +0000", committer_date="2024-03-05 10:30:00 +0000", author=BOB)

        repo = Repository(working_dir=session_repo)
        estimate = repo.hours_estimate(make_config(authors=("Bob",), debug_trace=True))
        assert estimate.commits == 2
        assert estimate.total == pd.Timedelta(hours=1)

    def test_hours_by_author(self, repo):
        """Per-author hours carry the repository name."""
        df = repo.hours_by_author(make_config())
        assert df["author"].tolist() == ["Alice Example", "Bob Example"]
        assert df["hours"].tolist() == pytest.approx([3 + 10 / 60, 0.0])
        assert (df["repository"] == "session_repo").all()


class TestRepositoryProperties:
    def test_repo_name(self, repo):
        """The repository is named after its directory."""
        assert repo.repo_name == "session_repo"

    def test_str_and_repr(self, repo, session_repo):
        """str and repr show the name and path."""
        assert str(repo) == f"git repository: session_repo at: {session_repo}"
        assert repr(repo) == str(session_repo)

    def test_subdirectory_finds_repository(self, session_repo):
        """A path inside the working tree finds the repository."""
        sub = session_repo / "src"
        sub.mkdir()
        assert Repository(working_dir=sub).repo_name == "session_repo"
