"""
.. module:: repository
   :platform: Unix, Windows
   :synopsis: Retrieves commit timelines from a single git repository and estimates hours on them

"""

import os

from git import Repo
from git.exc import CommandError

from githours.estimator import estimate_by_author, estimate_hours
from githours.logging import logger
from githours.timeline import LOG_FORMAT, merge_batches, parse_log_output

__all__ = ["GitLogError", "Repository", "log_arguments", "retrieval_modes"]


class GitLogError(RuntimeError):
    """Raised when git log cannot be run or reports an error."""

    def __init__(self, message, stderr=None):
        self.stderr = stderr
        super().__init__(message)


def log_arguments(config, *extra):
    """Builds the argument list for one ``git log`` query.

    Args:
        config (EstimationConfig): Date range and author filter
        *extra (str): Ref selectors such as ``--all`` or ``--walk-reflogs``

    Returns:
        list[str]: Arguments following ``git log``
    """
    args = list(extra)
    args += ["--date=iso-local", f"--pretty=format:{LOG_FORMAT}"]
    pattern = config.author_pattern()
    if pattern:
        args.append(f"--author={pattern}")
    args += [f"--since={config.since}", f"--before={config.before}"]
    return args


def retrieval_modes(config):
    """Returns the ref selectors of each query to run, in order.

    At most two queries are run: all branches first, then the reflog of every ref.
    """
    if config.all_branches and config.reflog:
        return [("--all",), ("--walk-reflogs", "--all")]
    if config.all_branches:
        return [("--all",)]
    if config.reflog:
        return [("--walk-reflogs",)]
    return [()]


class Repository:
    """A git repository whose commit history is turned into an hours estimate.

    Args:
        working_dir (Optional[str]): Path to the git repository, the current working
            directory if None
        verbose (bool, optional): Whether to print verbose output. Defaults to False.

    Attributes:
        verbose (bool): Whether verbose output is enabled
        git_dir (str): Path to the git repository
        repo (git.Repo): GitPython Repo instance

    Raises:
        git.InvalidGitRepositoryError: If the path is not inside a git repository
        git.NoSuchPathError: If the path does not exist

    Examples:
        >>> repo = Repository('/path/to/repo')
        >>> config = EstimationConfig.from_options(since='2024-01-01', before='2024-02-01')
        >>> repo.hours_estimate(config).total
    """

    def __init__(self, working_dir=None, verbose=False):
        self.verbose = verbose

        # Convert PosixPath to string if needed
        self.git_dir = os.getcwd() if working_dir is None else str(working_dir)
        self.repo = Repo(self.git_dir, search_parent_directories=True)

        if self.verbose:
            print(f"Repository [{self.repo_name}] instantiated at directory: {self.git_dir}")
        logger.info(f"Repository [{self.repo_name}] instantiated at directory: {self.git_dir}")

    @property
    def repo_name(self):
        """Name of the directory holding the working tree, or 'unknown_repo'."""
        reponame = os.path.basename(os.path.dirname(os.path.abspath(self.repo.git_dir)))
        if reponame.strip() == "":
            return "unknown_repo"
        return reponame

    def raw_log(self, config, *extra):
        """Runs one git log query and returns its raw output.

        Args:
            config (EstimationConfig): Date range and author filter
            *extra (str): Ref selectors prepended to the query

        Returns:
            str: stdout of git log

        Raises:
            GitLogError: If git fails or writes to stderr
        """
        args = log_arguments(config, *extra)
        logger.debug(f"Running git log {' '.join(args)}")
        try:
            _, stdout, stderr = self.repo.git.log(*args, with_extended_output=True)
        except CommandError as e:
            stderr = (e.stderr or "").strip()
            logger.error(f"git log failed in repo '{self.repo_name}': {stderr or e}")
            raise GitLogError(stderr or f"Error running git: {e}", stderr=stderr) from e

        if stderr and stderr.strip():
            logger.error(f"git log reported an error in repo '{self.repo_name}': {stderr.strip()}")
            raise GitLogError(stderr.strip(), stderr=stderr)
        return stdout

    def commit_timeline(self, config):
        """Retrieves every commit in range and merges them into one ordered timeline.

        Args:
            config (EstimationConfig): Range, author filter and retrieval switches

        Returns:
            OrderedTimeline: Commits oldest first, each commit at most once
        """
        modes = retrieval_modes(config)
        logger.info(f"Fetching commits from '{self.repo_name}' between {config.since!r} and {config.before!r}")
        batches = [parse_log_output(self.raw_log(config, *extra)) for extra in modes]
        timeline = merge_batches(*batches)
        logger.info(f"Finished fetching commits from '{self.repo_name}'. Found {len(timeline)} commits.")
        return timeline

    def hours_estimate(self, config):
        """Estimates the hours worked in this repository.

        Args:
            config (EstimationConfig): Range, filters, session gap and output switches

        Returns:
            Estimate: Total time plus optional active periods and trace
        """
        logger.info(f"Starting hours estimation for '{self.repo_name}'")
        return estimate_hours(self.commit_timeline(config), config)

    def hours_by_author(self, config):
        """Estimates the hours of every author separately.

        Returns:
            DataFrame: Columns author, commits, total, hours and repository
        """
        df = estimate_by_author(self.commit_timeline(config), config)
        df["repository"] = self.repo_name
        logger.info(f"Finished hours estimation by author. Found data for {len(df)} authors.")
        return df

    def __str__(self):
        return f"git repository: {self.repo_name} at: {self.git_dir}"

    def __repr__(self):
        return str(self.git_dir)
