"""Shared helpers."""

from .numbers import parse_int

__all__ = ["parse_int"]
