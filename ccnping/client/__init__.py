from .correlation import CorrelationTable, ProbeRecord
from .session import PingSession
from .statistics import Statistics, Summary, format_summary

__all__ = [
    "CorrelationTable",
    "PingSession",
    "ProbeRecord",
    "Statistics",
    "Summary",
    "format_summary",
]
