"""Monitoring module for the van load planner.

Provides stage observers and metrics export for solves.
"""

from .metrics import (
    SolveMetrics,
    TripMetrics,
    collect_metrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from .observer import RecordingObserver, SolveObserver, VerboseObserver

__all__ = [
    # Metrics
    "SolveMetrics",
    "TripMetrics",
    "collect_metrics",
    "export_to_csv",
    "export_to_json",
    "print_summary",
    # Observers
    "RecordingObserver",
    "SolveObserver",
    "VerboseObserver",
]
