"""
HTTP layer for press kit analytics.
"""

from .router import router

__all__ = ["router"]
