"""Utility helpers for chilltv."""

from chilltv.utils.logging_setup import parse_size, setup_logging

__all__ = [
    "parse_size",
    "setup_logging",
]
