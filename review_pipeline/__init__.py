"""
Review Pipeline service.

Comment moderation, engagement counters and translation synchronisation for
the book-review site.
"""

__version__ = "0.1.0"
