"""
Periodic metric usage analysis: discovery, probes, classification and scheduling.
"""
