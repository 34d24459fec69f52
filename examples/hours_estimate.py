"""
Example of estimating development hours from commit timestamps.

This example demonstrates:
1. Building a small repository with commits at known times
2. Estimating the hours worked from those commits
3. Listing the active periods and a per-author breakdown
"""

import tempfile
import time

import git

from githours import EstimationConfig, Repository
from githours.report import render

COMMITS = [
    ("Alice Example", "2024-03-04 09:00:00 +0000"),
    ("Alice Example", "2024-03-04 09:30:00 +0000"),
    ("Bob Example", "2024-03-04 10:15:00 +0000"),
    ("Alice Example", "2024-03-04 11:00:00 +0000"),
    ("Alice Example", "2024-03-04 11:10:00 +0000"),
    ("Bob Example", "2024-03-04 13:00:00 +0000"),
    ("Alice Example", "2024-03-04 15:00:00 +0000"),
]


if __name__ == "__main__":
    print("Creating sample repository...")
    start_time = time.time()

    with tempfile.TemporaryDirectory() as repo_dir:
        grepo = git.Repo.init(repo_dir)
        grepo.config_writer().set_value("user", "name", "Example").release()
        grepo.config_writer().set_value("user", "email", "example@example.com").release()
        for i, (author, when) in enumerate(COMMITS):
            env = {
                "GIT_AUTHOR_NAME": author,
                "GIT_AUTHOR_EMAIL": "dev@example.com",
                "GIT_AUTHOR_DATE": when,
                "GIT_COMMITTER_DATE": when,
            }
            grepo.git.commit("--allow-empty", m=f"change {i}", env=env)

        repo = Repository(working_dir=repo_dir)
        config = EstimationConfig.from_options(since="2024-03-01", before="2024-04-01", periods=True)

        print("\nEstimating development hours...")
        estimate = repo.hours_estimate(config)
        print(render(config, estimate))

        print("\nActive periods:")
        print(estimate.periods_frame()[["start", "end", "hours"]])

        print("\nHours by author:")
        print(repo.hours_by_author(config)[["author", "commits", "hours"]])

        print(f"\nTotal estimated hours: {estimate.hours:.2f}")

    end_time = time.time()
    print(f"\nAnalysis completed in {end_time - start_time:.2f} seconds")
