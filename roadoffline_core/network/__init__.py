"""Network module - Fetch capability."""

from roadoffline_core.network.fetcher import Fetcher, HttpxFetcher, CallableFetcher

__all__ = ["Fetcher", "HttpxFetcher", "CallableFetcher"]
