from githours.config import EstimationConfig
from githours.estimator import ActivePeriod, Estimate, estimate_by_author, estimate_hours
from githours.repository import GitLogError, Repository
from githours.timeline import CommitRecord, OrderedTimeline, merge_batches
from githours.timestamps import MalformedTimestamp

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("git-hours")
except PackageNotFoundError:
    # Running from a source checkout
    __version__ = "0.0.0"

__all__ = [
    "Repository",
    "EstimationConfig",
    "CommitRecord",
    "OrderedTimeline",
    "ActivePeriod",
    "Estimate",
    "GitLogError",
    "MalformedTimestamp",
    "estimate_hours",
    "estimate_by_author",
    "merge_batches",
]
