"""
Programmatic client for the marketplace API.
"""

from .api import ApiClient, ApiError
from .state import ListingPage, MarketplaceSession

__all__ = ["ApiClient", "ApiError", "ListingPage", "MarketplaceSession"]
