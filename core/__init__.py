"""
Core package for the bundler latency benchmark.
"""

from .harness import LatencyHarness, TrialOperation, aggregate_all
from .monitor import InclusionMonitor

__all__ = ["LatencyHarness", "TrialOperation", "aggregate_all", "InclusionMonitor"]
