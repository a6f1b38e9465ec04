# uipom/selectors/strategy.py
from __future__ import annotations

from enum import Enum

from lxml import etree

from uipom.utils.logger import get_logger

log = get_logger(__name__)


class LocatorDialect(str, Enum):
    xpath = "xpath"  # hierarchical path query
    css = "css"      # style-selector query


def detect_dialect(expression: str) -> LocatorDialect:
    """
    Classify a raw selector string.

    The string is compiled with the XPath 1.0 grammar; if that succeeds it is a
    path query, anything else (syntax errors, empty or non-string input) is
    taken as a style query. Never raises.

    Known ambiguity: a bare tag name such as ``div`` or ``button`` is valid
    XPath too and is classified as a path query. Prefix with ``css=`` in the
    descriptor to force the style dialect.
    """
    if not isinstance(expression, str) or not expression.strip():
        return LocatorDialect.css
    try:
        etree.XPath(expression)
    except (etree.XPathSyntaxError, etree.XPathError, ValueError, TypeError):
        return LocatorDialect.css
    except Exception as e:
        log.debug(f"XPath compile of {expression!r} failed unexpectedly: {e!r}")
        return LocatorDialect.css
    return LocatorDialect.xpath
