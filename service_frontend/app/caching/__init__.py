"""
Frontend caching package.

Provides the process-wide response cache used by the CMS client and the
key builder that gives each CMS request a stable identity. Cache entries
are short-lived and expire on time only.
"""

from .cache_key import build_key
from .response_cache import CacheEntry, ResponseCache

__all__ = ["build_key", "CacheEntry", "ResponseCache"]
