# uipom/core/options.py
from __future__ import annotations

from typing import Any, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from uipom.errors import InvalidOptionsError

O = TypeVar("O", bound="ScriptOptions")


class ScriptOptions(BaseModel):
    """Options passed verbatim to a DOM method; serialised as camelCase JSON."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def __str__(self) -> str:
        return self.to_json()


class ScrollIntoViewOptions(ScriptOptions):
    """Element.scrollIntoView() options."""
    behavior: Optional[Literal["auto", "instant", "smooth"]] = None
    block: Optional[Literal["start", "center", "end", "nearest"]] = None
    inline: Optional[Literal["start", "center", "end", "nearest"]] = None


class FocusOptions(ScriptOptions):
    """HTMLElement.focus() options."""
    prevent_scroll: Optional[bool] = Field(default=None, alias="preventScroll")
    focus_visible: Optional[bool] = Field(default=None, alias="focusVisible")


def coerce_options(value: Any, model: Type[O]) -> O:
    """Accept a model instance or a mapping; anything else is InvalidOptionsError."""
    if isinstance(value, model):
        return value
    if isinstance(value, dict):
        try:
            return model.model_validate(value)
        except ValidationError as ve:
            raise InvalidOptionsError(f"invalid {model.__name__}: {ve.errors()}") from ve
    raise InvalidOptionsError(f"expected {model.__name__} or a mapping, got {type(value).__name__}")
