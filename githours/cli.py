"""
.. module:: cli
   :platform: Unix, Windows
   :synopsis: The git-hours command line

"""

import argparse
import sys

from git.exc import InvalidGitRepositoryError, NoSuchPathError

from githours.config import EstimationConfig, default_range
from githours.logging import add_file_handler, add_stream_handler, logger, remove_all_handlers, set_log_level
from githours.report import format_total, render
from githours.repository import GitLogError, Repository
from githours.timestamps import format_duration


def build_parser():
    since, before = default_range()
    p = argparse.ArgumentParser(
        prog="git-hours",
        description="Estimate hours worked on a git repository from its commit timestamps.",
    )
    p.add_argument("--since", default=None, help=f"since (after) date. Default: {since!r}")
    p.add_argument("--before", default=None, help=f"before date. Default: {before!r}")
    p.add_argument("--author", default="", help="author name, several names separated by commas")
    p.add_argument("--duration", default="1h", help="session gap, e.g. 1h, 45m, 1h30m. Default: 1h")
    p.add_argument("--debug", action="store_true", help="print the gap and contribution of every commit")
    p.add_argument("--periods", action="store_true", help="print the list of active periods")
    p.add_argument("--all", dest="all_branches", action="store_true", help="include all branches in git log")
    p.add_argument("--reflog", action="store_true", help="walk reflog entries in git log")
    p.add_argument("--by-author", action="store_true", help="print one estimate per author")
    p.add_argument("--repo", default=None, help="path to the repository. Default: current directory")
    p.add_argument("--log-level", default=None, help="log to stderr at this level, e.g. INFO or DEBUG")
    p.add_argument("--log-file", default=None, help="also write the log to this file (level from --log-level, default INFO)")
    return p


def _configure_logging(parser, args):
    level = (args.log_level or "INFO").upper()
    try:
        set_log_level(level)
    except ValueError as e:
        parser.error(str(e))
    if args.log_level:
        add_stream_handler(level=level, stream=sys.stderr)
    if args.log_file:
        try:
            add_file_handler(args.log_file, level=level)
        except OSError as e:
            remove_all_handlers()
            parser.error(f"cannot open log file: {e}")


def _run(args, config):
    try:
        repo = Repository(working_dir=args.repo)
        if args.by_author:
            df = repo.hours_by_author(config)
            if df.empty:
                print(format_total(config, 0))
            else:
                df["total"] = df["total"].map(format_duration)
                print(df[["author", "commits", "total", "hours"]].to_string(index=False))
            return 0
        estimate = repo.hours_estimate(config)
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        print(f"Error: not a git repository: {e}", file=sys.stderr)
        return 1
    except GitLogError as e:
        print(e, file=sys.stderr)
        return 1

    print(render(config, estimate))
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = EstimationConfig.from_options(
            since=args.since,
            before=args.before,
            author=args.author,
            duration=args.duration,
            periods=args.periods,
            debug=args.debug,
            all_branches=args.all_branches,
            reflog=args.reflog,
        )
    except ValueError as e:
        parser.error(str(e))

    if not (args.log_level or args.log_file):
        return _run(args, config)

    original_level = logger.level
    _configure_logging(parser, args)
    try:
        return _run(args, config)
    finally:
        # handlers belong to this run only
        remove_all_handlers()
        logger.setLevel(original_level)



if __name__ == "__main__":
    raise SystemExit(main())
