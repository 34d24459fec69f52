"""
.. module:: config
   :platform: Unix, Windows
   :synopsis: Validated, read-only settings for one hours estimate

"""

import datetime
from dataclasses import dataclass, field

import pandas as pd
from pandas.errors import OutOfBoundsTimedelta

from githours.logging import logger
from githours.timestamps import parse_session_gap

__all__ = ["CONTINUOUS_WORK_FACTOR", "DEFAULT_SESSION_GAP", "EstimationConfig", "default_range"]

# gaps shorter than this many session gaps count in full, longer ones count as one session gap
CONTINUOUS_WORK_FACTOR = 2

DEFAULT_SESSION_GAP = pd.Timedelta(hours=1)


def _offset_string(moment):
    offset = moment.utcoffset() or datetime.timedelta(0)
    sign = "-" if offset < datetime.timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def default_range(now=None):
    """Returns the default ``(since, before)`` window: the whole previous calendar month.

    Both bounds carry the local UTC offset, e.g. ``("2026-09-01 00:00:00 +02:00",
    "2026-09-30 23:59:59 +02:00")``.

    Args:
        now (Optional[datetime.datetime]): Reference time, defaults to the current local time

    Returns:
        tuple[str, str]: since and before strings, ready to hand to git
    """
    if now is None:
        now = datetime.datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()

    last_day = now.date().replace(day=1) - datetime.timedelta(days=1)
    first_day = last_day.replace(day=1)
    offset = _offset_string(now)
    return f"{first_day.isoformat()} 00:00:00 {offset}", f"{last_day.isoformat()} 23:59:59 {offset}"


@dataclass(frozen=True)
class EstimationConfig:
    """Settings for retrieving commits and estimating hours.

    Attributes:
        since (str): Lower date bound handed to ``git log --since``
        before (str): Upper date bound handed to ``git log --before``
        authors (tuple[str, ...]): Author name patterns, empty for everyone
        session_gap (pandas.Timedelta): Threshold separating continuous work from idle time
        emit_periods (bool): Whether to segment the timeline into active periods
        debug_trace (bool): Whether to keep a per-commit trace
        all_branches (bool): Query every ref instead of HEAD only
        reflog (bool): Also walk reflog entries
    """

    since: str
    before: str
    authors: tuple = ()
    session_gap: pd.Timedelta = DEFAULT_SESSION_GAP
    emit_periods: bool = False
    debug_trace: bool = False
    all_branches: bool = False
    reflog: bool = False
    continuous_work_factor: int = field(default=CONTINUOUS_WORK_FACTOR, repr=False)

    def __post_init__(self):
        if not isinstance(self.session_gap, pd.Timedelta):
            object.__setattr__(self, "session_gap", pd.Timedelta(self.session_gap))
        if self.session_gap <= pd.Timedelta(0):
            raise ValueError(f"session_gap must be positive, got {self.session_gap}")
        if self.continuous_work_factor <= 0:
            raise ValueError(f"continuous_work_factor must be positive, got {self.continuous_work_factor}")
        try:
            self.session_gap * self.continuous_work_factor
        except (OverflowError, OutOfBoundsTimedelta) as e:
            raise ValueError(
                f"session_gap {self.session_gap} times {self.continuous_work_factor} is out of range"
            ) from e
        object.__setattr__(self, "authors", tuple(self.authors))

    @property
    def continuous_threshold(self):
        """Gaps strictly below this are counted at face value."""
        return self.session_gap * self.continuous_work_factor

    def author_pattern(self):
        """Returns the value for ``git log --author``, or None when no filter is set.

        Several names are joined into a basic-regex alternation, ``\\(a\\)\\|\\(b\\)``.
        """
        if not self.authors:
            return None
        if len(self.authors) == 1:
            return self.authors[0]
        return r"\(" + r"\)\|\(".join(self.authors) + r"\)"

    @classmethod
    def from_options(
        cls,
        since=None,
        before=None,
        author="",
        duration="1h",
        periods=False,
        debug=False,
        all_branches=False,
        reflog=False,
        now=None,
    ):
        """Builds a config from raw command line values.

        Args:
            since (Optional[str]): Lower bound, defaults to the start of last month
            before (Optional[str]): Upper bound, defaults to the end of last month
            author (str): Comma separated author names, empty for everyone
            duration (str): Session gap such as ``1h`` or ``45m``
            periods (bool): Emit active periods
            debug (bool): Emit the per-commit trace
            all_branches (bool): Include all branches
            reflog (bool): Walk reflog entries
            now (Optional[datetime.datetime]): Reference time for the default range

        Returns:
            EstimationConfig: The validated config

        Raises:
            ValueError: If the duration is invalid or not positive
        """
        default_since, default_before = default_range(now)
        authors = tuple(name.strip() for name in (author or "").split(",") if name.strip())
        config = cls(
            since=since or default_since,
            before=before or default_before,
            authors=authors,
            session_gap=parse_session_gap(duration),
            emit_periods=periods,
            debug_trace=debug,
            all_branches=all_branches,
            reflog=reflog,
        )
        logger.debug(f"Built estimation config: {config}")
        return config
