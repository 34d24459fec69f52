"""
.. module:: estimator
   :platform: Unix, Windows
   :synopsis: Turns an ordered commit timeline into an estimate of hours worked

The estimate is a fold over the timeline. Each commit adds the time since the
previous commit, unless that gap is at least ``continuous_work_factor`` session gaps
long, in which case the developer is assumed to have been away and only one session
gap is credited for resuming work.

"""

from dataclasses import dataclass, field

import pandas as pd
from pandas import DataFrame

from githours.config import CONTINUOUS_WORK_FACTOR
from githours.logging import logger

__all__ = ["ActivePeriod", "TraceStep", "Estimate", "GapAccumulator", "estimate_hours", "estimate_by_author"]

_ZERO = pd.Timedelta(0)


@dataclass(frozen=True)
class ActivePeriod:
    start: pd.Timestamp
    end: pd.Timestamp
    duration: pd.Timedelta = _ZERO


@dataclass(frozen=True)
class TraceStep:
    """What one commit contributed. ``elapsed`` is None for the first commit."""

    record: object
    elapsed: pd.Timedelta | None
    contribution: pd.Timedelta
    used_fallback: bool = False


@dataclass(frozen=True)
class Estimate:
    total: pd.Timedelta = _ZERO
    periods: tuple = ()
    trace: tuple = ()
    commits: int = 0

    @property
    def hours(self):
        return self.total / pd.Timedelta(hours=1)

    def periods_frame(self):
        """Returns the active periods as a DataFrame with start, end, duration and hours columns."""
        df = DataFrame(
            [[p.start, p.end, p.duration] for p in self.periods],
            columns=["start", "end", "duration"],
        )
        df["duration"] = pd.to_timedelta(df["duration"])
        df["hours"] = df["duration"] / pd.Timedelta(hours=1)
        return df

    def trace_frame(self):
        """Returns the debug trace as a DataFrame, one row per commit in timeline order."""
        return DataFrame(
            [
                [
                    step.record.identity,
                    step.record.author_name,
                    step.record.author_time,
                    step.elapsed,
                    step.contribution,
                    step.used_fallback,
                ]
                for step in self.trace
            ],
            columns=["identity", "author", "author_time", "elapsed", "contribution", "used_fallback"],
        )


@dataclass
class GapAccumulator:
    """Mutable fold state threaded through one pass over a timeline."""

    session_gap: pd.Timedelta
    continuous_work_factor: int = CONTINUOUS_WORK_FACTOR
    track_periods: bool = False
    keep_trace: bool = False
    previous_author_time: pd.Timestamp | None = None
    total: pd.Timedelta = _ZERO
    current_period: ActivePeriod | None = None
    closed_periods: list = field(default_factory=list)
    trace: list = field(default_factory=list)
    commits: int = 0

    @property
    def threshold(self):
        return self.session_gap * self.continuous_work_factor

    def _open_period(self, at):
        if self.current_period is not None:
            self.closed_periods.append(self.current_period)
        self.current_period = ActivePeriod(start=at, end=at)

    def step(self, record):
        """Folds one commit into the state and returns its contribution."""
        self.commits += 1

        if self.previous_author_time is None:
            self.previous_author_time = record.author_time
            if self.track_periods:
                self._open_period(record.author_time)
            if self.keep_trace:
                self.trace.append(TraceStep(record, None, _ZERO))
            return _ZERO

        elapsed = record.author_time - self.previous_author_time
        used_fallback = False
        if elapsed < _ZERO:
            # author time went backwards (rebase, clock skew): measure to the commit time instead
            used_fallback = True
            elapsed = max(record.commit_time - self.previous_author_time, _ZERO)
            logger.debug(
                f"Author time of {record.identity or record.subject!r} precedes the previous commit, "
                f"using commit time ({elapsed})"
            )

        continuous = elapsed < self.threshold
        contribution = elapsed if continuous else self.session_gap

        if self.track_periods:
            if continuous and not used_fallback and self.current_period is not None:
                self.current_period = ActivePeriod(
                    start=self.current_period.start,
                    end=record.author_time,
                    duration=self.current_period.duration + elapsed,
                )
            else:
                self._open_period(record.author_time)

        if self.keep_trace:
            self.trace.append(TraceStep(record, elapsed, contribution, used_fallback))

        self.total += contribution
        self.previous_author_time = record.author_time
        return contribution

    def finish(self):
        """Closes any open period and returns the final Estimate."""
        if self.current_period is not None:
            self.closed_periods.append(self.current_period)
            self.current_period = None
        return Estimate(
            total=self.total,
            periods=tuple(self.closed_periods),
            trace=tuple(self.trace),
            commits=self.commits,
        )


def estimate_hours(timeline, config):
    """Estimates the time worked over an ordered timeline.

    Args:
        timeline (Iterable[CommitRecord]): Commits sorted ascending by author time
        config (EstimationConfig): Session gap and output switches

    Returns:
        Estimate: Total time, plus active periods and trace when requested. An empty
        timeline gives a zero total.
    """
    acc = GapAccumulator(
        session_gap=config.session_gap,
        continuous_work_factor=config.continuous_work_factor,
        track_periods=config.emit_periods,
        keep_trace=config.debug_trace,
    )
    for record in timeline:
        acc.step(record)
    result = acc.finish()

    logger.info(
        f"Estimated {result.total} over {result.commits} commits "
        f"({len(result.periods)} active periods, session gap {config.session_gap})"
    )
    return result


def estimate_by_author(timeline, config):
    """Runs the estimate separately for every author in the timeline.

    Args:
        timeline (OrderedTimeline): The merged timeline
        config (EstimationConfig): Settings shared by every author

    Returns:
        DataFrame: Columns author, commits, total and hours, one row per author
    """
    ds = []
    for author in sorted(timeline.authors()):
        result = estimate_hours(timeline.filter_author(author), config)
        ds.append([author, result.commits, result.total])

    df = DataFrame(ds, columns=["author", "commits", "total"])
    df["total"] = pd.to_timedelta(df["total"])
    df["hours"] = df["total"] / pd.Timedelta(hours=1)
    return df
