"""Fetchers for upstream price files."""

from omiewatch.fetchers.omie import build_url, fetch_period

__all__ = ["build_url", "fetch_period"]
