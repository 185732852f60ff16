"""Reelboard: storyboard editor backend.

REST API over a table store for timelines, tiles, linked segments and audio,
plus multi-provider AI generation with fallback.
"""

__version__ = "0.1.0"
