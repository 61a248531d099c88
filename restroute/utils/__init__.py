"""Helpers for URLs and keys."""
