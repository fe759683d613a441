"""
Listing parser exports.
"""

from app.scraping.parsing.base import ListingParser, build_page_url
from app.scraping.parsing.listing_parser import HTMLListingParser

__all__ = ["HTMLListingParser", "ListingParser", "build_page_url"]
