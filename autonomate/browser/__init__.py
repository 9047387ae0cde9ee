"""
Browser automation components.
"""

from autonomate.browser.driver import BrowserSession
from autonomate.browser.executor import ActionExecutor
from autonomate.browser.locator import LocatorResolver
from autonomate.browser.snapshot import SnapshotProvider

__all__ = [
    "BrowserSession",
    "ActionExecutor",
    "LocatorResolver",
    "SnapshotProvider",
]
