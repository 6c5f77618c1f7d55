"""State/store layer.

This package is the single source of truth for which devices are
currently seen and what their latest telemetry looks like.
"""
