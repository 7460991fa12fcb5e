"""
Mimir cardinality analyzer.

Classifies each tenant's highest-cardinality metrics as used or unused by
Grafana dashboards and alert rules, and exports the result as gauges.
"""

__version__ = "0.1.0"
