"""
Prometheus metrics exported by the analyzer.
"""

from cardinality_analyzer.metrics.registry import AnalyzerMetrics, Command, Status, Target

__all__ = [
    "AnalyzerMetrics",
    "Command",
    "Status",
    "Target",
]
