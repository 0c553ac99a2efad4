"""Aurix: workload-overload scoring and transcript-to-document workflows."""

__version__ = "0.1.0"
