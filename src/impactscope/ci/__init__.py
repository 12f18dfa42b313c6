"""CI history: the optional, read-only source of past test outcomes."""

from impactscope.ci.client import CiHistoryClient, CiHistoryProvider
from impactscope.ci.models import CiBuild, CiHistory, CiTestRun, group_runs

__all__ = [
    "CiBuild",
    "CiHistory",
    "CiHistoryClient",
    "CiHistoryProvider",
    "CiTestRun",
    "group_runs",
]
