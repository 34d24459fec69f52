"""
.. module:: timeline
   :platform: Unix, Windows
   :synopsis: Commit records parsed from git log output, merged into one ordered timeline

"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import pandas as pd
from pandas import DataFrame

from githours.logging import logger
from githours.timestamps import MalformedTimestamp, normalize_timestamp

__all__ = [
    "LOG_FORMAT",
    "CommitRecord",
    "OrderedTimeline",
    "parse_log_line",
    "parse_log_output",
    "merge_batches",
]

# hash | author date | committer date | author name | subject
LOG_FORMAT = "%H|%ad|%cd|%an|%s"
_FIELD_COUNT = 5


@dataclass(frozen=True)
class CommitRecord:
    """A single commit as seen by the estimator.

    No ordering between ``author_time`` and ``commit_time`` is assumed; rebases and
    cherry-picks routinely produce either order.
    """

    author_time: pd.Timestamp
    commit_time: pd.Timestamp
    author_name: str
    subject: str
    identity: str | None = None
    raw: str | None = field(default=None, compare=False, repr=False)

    def describe(self):
        """The log line as git printed it, fields separated by spaces."""
        if self.raw is not None:
            return self.raw.replace("|", " ")
        return " ".join(
            [self.identity or "", self.author_time.isoformat(), self.commit_time.isoformat(), self.author_name, self.subject]
        )


def parse_log_line(line):
    """Parses one line of ``git log --pretty=format:%H|%ad|%cd|%an|%s`` output.

    Args:
        line (str): A single log line. The subject may itself contain ``|``.

    Returns:
        CommitRecord: The parsed record

    Raises:
        ValueError: If the line has fewer than five fields
        MalformedTimestamp: If either date field cannot be parsed
    """
    parts = line.split("|", _FIELD_COUNT - 1)
    if len(parts) < _FIELD_COUNT:
        raise ValueError(f"expected {_FIELD_COUNT} fields in log line, got {len(parts)}: {line!r}")

    identity, author_date, commit_date, author_name, subject = parts
    return CommitRecord(
        author_time=normalize_timestamp(author_date),
        commit_time=normalize_timestamp(commit_date),
        author_name=author_name,
        subject=subject,
        identity=identity.strip() or None,
        raw=line,
    )


def parse_log_output(text):
    """Parses a whole batch of log output, dropping lines that cannot be read.

    Args:
        text (str): Raw stdout of one git log query

    Returns:
        list[CommitRecord]: Records in the order git printed them
    """
    records = []
    skipped = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            records.append(parse_log_line(line))
        except MalformedTimestamp as e:
            skipped += 1
            logger.warning(f"Skipping commit with malformed timestamp: {e}")
        except ValueError as e:
            skipped += 1
            logger.warning(f"Skipping unreadable log line: {e}")

    logger.debug(f"Parsed {len(records)} commits from log output ({skipped} skipped)")
    return records


class OrderedTimeline(Sequence):
    """Commit records sorted ascending by author time, each identity at most once."""

    def __init__(self, records=()):
        self._records = tuple(records)

    def __getitem__(self, index):
        return self._records[index]

    def __len__(self):
        return len(self._records)

    def __repr__(self):
        return f"OrderedTimeline({len(self._records)} commits)"

    def authors(self):
        """Returns the distinct author names in order of first appearance."""
        return list(dict.fromkeys(r.author_name for r in self._records))

    def filter_author(self, author_name):
        """Returns the sub-timeline of one author, order preserved."""
        return OrderedTimeline(r for r in self._records if r.author_name == author_name)

    def to_frame(self):
        """Returns the timeline as a DataFrame, one row per commit.

        Times are converted to UTC so the columns have a single datetime dtype.
        """
        df = DataFrame(
            [[r.author_time, r.commit_time, r.author_name, r.subject, r.identity] for r in self._records],
            columns=["author_time", "commit_time", "author", "subject", "identity"],
        )
        for col in ["author_time", "commit_time"]:
            df[col] = pd.to_datetime(df[col], utc=True)
        return df


def merge_batches(*batches):
    """Merges record batches into one ordered, de-duplicated timeline.

    The first occurrence of an identity wins; records without an identity are always
    kept. Sorting is stable, so commits with equal author times keep encounter order.

    Args:
        *batches (Iterable[CommitRecord]): Batches, e.g. from an ``--all`` and a reflog query

    Returns:
        OrderedTimeline: The merged timeline
    """
    seen = set()
    merged = []
    duplicates = 0
    for batch in batches:
        for record in batch:
            if record.identity is not None:
                if record.identity in seen:
                    duplicates += 1
                    continue
                seen.add(record.identity)
            merged.append(record)

    merged.sort(key=lambda r: r.author_time)
    logger.debug(f"Merged {len(batches)} batches into {len(merged)} commits ({duplicates} duplicates dropped)")
    return OrderedTimeline(merged)
