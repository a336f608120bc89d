"""Shadowverse match log: record storage, win-rate statistics and display helpers."""

__version__ = "0.1.0"
