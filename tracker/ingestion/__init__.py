"""
Ingestion Layer

RESPONSIBILITY: Raw snapshot capture from the HTTP source
OUTPUTS: FetchResult carrying the decoded payload, unmodified

MUST NOT: normalize records or detect events.
"""

from .fetcher import FetchResult, FetchStatus, SnapshotFetcher

__all__ = ['FetchResult', 'FetchStatus', 'SnapshotFetcher']
