"""
Content Module
Access to the CMS that owns place records.
"""

from .store import ContentStore
from .strapi import StrapiContentStore, parse_place

__all__ = ["ContentStore", "StrapiContentStore", "parse_place"]
