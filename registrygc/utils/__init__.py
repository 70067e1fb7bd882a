"""Logging, diagnostics and progress helpers."""
