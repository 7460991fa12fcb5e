"""
External dashboard and cardinality analyzer.
"""

from cardinality_analyzer.external.base import (
    DashboardAnalyzer,
    DashboardUsageArtifact,
    TenantDashboardUsage,
)
from cardinality_analyzer.external.mimirtool import MimirtoolAnalyzer

__all__ = [
    "DashboardAnalyzer",
    "DashboardUsageArtifact",
    "MimirtoolAnalyzer",
    "TenantDashboardUsage",
]
