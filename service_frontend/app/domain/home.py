"""
Home page view model.
"""

import asyncio
from datetime import timedelta
from typing import Optional

from pydantic import BaseModel

from fips_shared.logging import get_logger

from ..adapters.cms_client import CmsApiClient

logger = get_logger("frontend.home")


class HomeViewModel(BaseModel):
    page_title: str = "Find information about products and services"
    page_description: str = (
        "Use this service to explore what DfE delivers. Build on existing work, "
        "avoid duplication, and work more effectively across teams."
    )
    hide_navigation: bool = True
    published_products_count: int = 0
    category_types_count: int = 0


async def build_home_view_model(
    cms_client: CmsApiClient,
    cache_duration: Optional[timedelta] = None,
) -> HomeViewModel:
    """Count published products and category types; a failed count shows as 0."""
    published_products_count, category_types_count = await asyncio.gather(
        cms_client.get_published_products_count(cache_duration),
        cms_client.get_category_types_count(cache_duration),
    )

    view_model = HomeViewModel(
        published_products_count=published_products_count,
        category_types_count=category_types_count,
    )
    logger.debug(
        "Home counts loaded",
        published_products_count=view_model.published_products_count,
        category_types_count=view_model.category_types_count,
    )
    return view_model
