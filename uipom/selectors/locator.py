# uipom/selectors/locator.py
from __future__ import annotations

from dataclasses import dataclass

from uipom.selectors.strategy import LocatorDialect, detect_dialect

# Explicit dialect prefixes accepted in descriptor files
_PREFIXES = {
    "xpath=": LocatorDialect.xpath,
    "css=": LocatorDialect.css,
}


@dataclass(frozen=True)
class Locator:
    """A selector expression plus the dialect it is resolved with."""
    dialect: LocatorDialect
    expression: str

    @classmethod
    def parse(cls, value: str) -> "Locator":
        """
        Build a Locator from descriptor text.

        - "xpath=//a" / "css=div" → forced dialect
        - anything else           → dialect detected from the expression
        """
        v = (value or "").strip()
        for prefix, dialect in _PREFIXES.items():
            if v.lower().startswith(prefix):
                return cls(dialect=dialect, expression=v[len(prefix):].strip())
        return cls(dialect=detect_dialect(v), expression=v)

    def playwright_selector(self) -> str:
        """Selector string in Playwright's engine syntax."""
        return f"{self.dialect.value}={self.expression}"

    def __str__(self) -> str:
        return f"{self.dialect.value} {self.expression}"
