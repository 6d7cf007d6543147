"""
Repository subpackage for press kit analytics.
"""

from .account_repository import AccountDirectoryRepository
from .click_repository import ClickEventRepository
from .presskit_repository import PressKitRepository
from .view_repository import ViewEventRepository

__all__ = [
    "AccountDirectoryRepository",
    "ClickEventRepository",
    "PressKitRepository",
    "ViewEventRepository",
]
