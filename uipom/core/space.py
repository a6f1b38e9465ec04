# uipom/core/space.py
from __future__ import annotations

"""Space
--------
Entry point of the runtime: binds a compiled model to a driver and the
owner-configured defaults. Pages are reachable as attributes
(`space.SearchPage` or `space.Search`) or through `space.page(name)`.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from uipom.core.compiler import CompiledModel, DescriptorCompiler, TypeCache
from uipom.core.component import Page
from uipom.core.descriptor_loader import load_descriptor_dir, load_descriptor_files
from uipom.core.descriptors import DescriptorModel
from uipom.core.options import FocusOptions, ScrollIntoViewOptions
from uipom.driver.base import Driver
from uipom.utils.config import Settings, WaitPolicy, get_settings
from uipom.utils.logger import get_logger

log = get_logger(__name__)


class SpaceOptions(BaseModel):
    """Defaults shared by every page of a space."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout_ms: int = Field(default=30000, ge=0)
    polling_interval_ms: int = Field(default=500, ge=1)
    base_url: Optional[str] = None
    scroll_into_view: Optional[ScrollIntoViewOptions] = None
    focus: Optional[FocusOptions] = None
    secret_name_markers: List[str] = Field(default_factory=lambda: ["password", "secret", "token"])

    @field_validator("secret_name_markers")
    @classmethod
    def _lower(cls, v: List[str]) -> List[str]:
        return [m.lower() for m in v if m]

    @classmethod
    def from_settings(cls, s: Settings, **overrides) -> "SpaceOptions":
        values = dict(
            timeout_ms=s.DEFAULT_TIMEOUT_MS,
            polling_interval_ms=s.POLLING_INTERVAL_MS,
            base_url=s.BASE_URL,
            secret_name_markers=s.SECRET_NAME_MARKERS,
        )
        values.update(overrides)
        return cls(**values)


class Space:
    """A driver plus the compiled page types it serves."""

    def __init__(self, driver: Driver, compiled: CompiledModel, options: Optional[SpaceOptions] = None) -> None:
        self.driver = driver
        self.compiled = compiled
        self.options = options or SpaceOptions.from_settings(get_settings())
        self._pages: Dict[str, Page] = {}

    @property
    def wait_policy(self) -> WaitPolicy:
        return WaitPolicy(timeout_ms=self.options.timeout_ms, polling_interval_ms=self.options.polling_interval_ms)

    @property
    def page_names(self) -> List[str]:
        return list(self.compiled.pages)

    def page(self, name: str) -> Page:
        """Page instance by descriptor name ("Search") or class name ("SearchPage")."""
        candidates = [name, name[: -len("Page")] if name.endswith("Page") else name + "Page"]
        page_type = next((self.compiled.pages[c] for c in candidates if c in self.compiled.pages), None)
        if page_type is None:
            known = ", ".join(sorted(self.compiled.pages)) or "none"
            raise KeyError(f"unknown page '{name}' (known: {known})")
        if page_type.type_id not in self._pages:
            log.debug(f"Binding {page_type.type_id} to {type(self.driver).__name__}")
            self._pages[page_type.type_id] = page_type(self)
        return self._pages[page_type.type_id]

    def __getattr__(self, name: str) -> Page:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.page(name)
        except KeyError as e:
            raise AttributeError(str(e)) from e

    def __repr__(self) -> str:
        return f"<Space pages={self.page_names}>"


def compile_descriptors(
    source: Union[DescriptorModel, Path, str, List[Union[Path, str]], None] = None,
    cache: Optional[TypeCache] = None,
) -> CompiledModel:
    """
    Load (when needed) and compile descriptors: a model, a directory, a
    file list, or None for `Settings.DESCRIPTORS_DIR`.
    """
    if isinstance(source, DescriptorModel):
        model = source
    elif source is None:
        model = load_descriptor_dir()
    elif isinstance(source, (str, Path)) and Path(source).is_dir():
        model = load_descriptor_dir(Path(source))
    elif isinstance(source, (str, Path)):
        model = load_descriptor_files([Path(source)])
    else:
        model = load_descriptor_files([Path(p) for p in source])
    return DescriptorCompiler(cache).compile(model)
