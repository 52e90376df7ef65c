"""
Adapters package for the frontend service.

Contains the HTTP client for the headless CMS. The adapter encapsulates:

- Base URL and read/write credential selection
- Response caching for reads
- Fail-soft error handling (errors become empty results, never exceptions)
"""

from .cms_client import CmsApiClient

__all__ = ["CmsApiClient"]
