"""Mono-Assistant: lecture transcript to study-summary PDF."""

__version__ = "1.0.0"
