"""Caller/callee graph construction and layout for Python codebases."""

__version__ = "0.1.0"
