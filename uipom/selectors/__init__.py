# uipom/selectors/__init__.py
"""
Selectors package
-----------------
Classifies raw selector strings into a dialect (XPath path query or CSS
style query) and wraps them as Locator values shared by the compiler and
the runtime.
"""

from .strategy import LocatorDialect, detect_dialect
from .locator import Locator

__all__ = [
    "LocatorDialect",
    "detect_dialect",
    "Locator",
]
