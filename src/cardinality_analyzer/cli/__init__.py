"""
CLI for the cardinality analyzer.
"""

from cardinality_analyzer.cli.main import build_parser, build_pipeline, main

__all__ = [
    "build_parser",
    "build_pipeline",
    "main",
]
