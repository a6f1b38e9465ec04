# uipom/driver/__init__.py
"""
Driver package
--------------
The driver capability the runtime calls into, and its Playwright
implementation. Import `uipom.driver.playwright` directly for the latter so
that the protocols stay importable without a browser stack.
"""

from .base import Driver, DriverElement, Gestures

__all__ = [
    "Driver",
    "DriverElement",
    "Gestures",
]
