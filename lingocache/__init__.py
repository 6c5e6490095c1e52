"""
lingocache - translation caching and language resolution for CMS content.
"""

__version__ = "0.1.0"
