# uipom/core/descriptor_loader.py
from __future__ import annotations

"""Descriptor schema and loader
-------------------------------
Defines the pydantic models for page/component descriptor files and loads
YAML (multi-document, ${ENV} substitution) into a linked DescriptorModel.

Example document:

    namespace: nuget
    pages:
      HomePage:
        url: /
        components:
          search input: "#search"
          Packages:
            by: .package
            plural: true
            components:
              Title: .//a
              Tags: { by: .package-tags a, plural: true }
          Footer: { ref: Footer }
    components:
      Footer:
        by: footer
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from uipom.core.descriptors import ComponentDescriptor, DescriptorModel
from uipom.errors import DescriptorError
from uipom.selectors.locator import Locator
from uipom.utils.config import get_settings
from uipom.utils.logger import get_logger

log = get_logger(__name__)


# ---------- Helpers ----------


def to_identifier(key: str) -> str:
    """'search box' -> 'SearchBox', 'packages' -> 'Packages', '2fa code' -> '_2faCode'."""
    parts = [p for p in re.split(r"[^0-9A-Za-z]+", key.strip()) if p]
    if not parts:
        raise DescriptorError(f"invalid component name {key!r}")
    ident = "".join(p[:1].upper() + p[1:] for p in parts)
    return "_" + ident if ident[0].isdigit() else ident


def _subst_env(obj: Any) -> Any:
    if isinstance(obj, str):
        def repl(m):
            key = m.group(1)
            return os.environ.get(key, m.group(0))
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}", repl, obj)
    if isinstance(obj, list):
        return [_subst_env(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _subst_env(v) for k, v in obj.items()}
    return obj


def _format_validation_error(ve: ValidationError, header: str) -> str:
    lines = [header]
    for e in ve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []))
        msg = e.get("msg", "invalid value")
        lines.append(f"  - {loc}: {msg}")
    return "\n".join(lines)


# ---------- Schema ----------


class ComponentSpec(BaseModel):
    by: Optional[str] = Field(default=None, description="Locator (xpath or css, auto-detected)")
    plural: Optional[bool] = Field(default=None, description="Matches a collection of elements")
    singular: Optional[str] = Field(default=None, description="Element type name for plural components")
    ref: Optional[str] = Field(default=None, description="Name of a shared component this one aliases")
    components: Dict[str, "ComponentSpec"] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}

    @model_validator(mode="before")
    @classmethod
    def _shorthand(cls, v: Any) -> Any:
        # "Title: .//a" is shorthand for "Title: {by: .//a}"
        if isinstance(v, str):
            return {"by": v}
        return v

    @field_validator("by")
    @classmethod
    def _non_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("locator cannot be empty")
        return v

    @model_validator(mode="after")
    def _check(self) -> "ComponentSpec":
        if self.ref and self.components:
            raise ValueError("a referencing component takes its members from the referenced one")
        if self.by is None and self.ref is None:
            raise ValueError("component needs a locator ('by') or a reference ('ref')")
        return self

    @property
    def is_plural(self) -> bool:
        if self.plural is not None:
            return self.plural
        return self.singular is not None


class PageSpec(BaseModel):
    url: Optional[str] = Field(default=None, description="Absolute or base-relative url")
    components: Dict[str, ComponentSpec] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}


class DescriptorFile(BaseModel):
    version: str = Field(default="1")
    namespace: Optional[str] = None
    pages: Dict[str, PageSpec] = Field(default_factory=dict)
    components: Dict[str, ComponentSpec] = Field(default_factory=dict)

    @field_validator("namespace")
    @classmethod
    def _namespace_ident(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*", v):
            raise ValueError(f"namespace must be a dotted identifier, got {v!r}")
        return v

    @model_validator(mode="after")
    def _not_empty(self) -> "DescriptorFile":
        if not self.pages and not self.components:
            raise ValueError("descriptor defines no pages or components")
        return self


ComponentSpec.model_rebuild()


# ---------- Building the model ----------


def _build_component(key: str, spec: ComponentSpec, namespace: str) -> ComponentDescriptor:
    name = to_identifier(key)
    node = ComponentDescriptor(
        name=name,
        namespace=namespace,
        locator=Locator.parse(spec.by) if spec.by else None,
        singular_name=to_identifier(spec.singular) if spec.singular else None,
        is_plural=spec.is_plural,
        ref_name=to_identifier(spec.ref) if spec.ref else None,
    )
    for child_key, child_spec in spec.components.items():
        node.add_child(_build_component(child_key, child_spec, node.member_namespace))
    return node


def _build_page(key: str, spec: PageSpec, namespace: str) -> ComponentDescriptor:
    page = ComponentDescriptor(name=to_identifier(key), namespace=namespace, is_page=True, url=spec.url)
    for child_key, child_spec in spec.components.items():
        page.add_child(_build_component(child_key, child_spec, page.member_namespace))
    return page


def add_document(model: DescriptorModel, doc: DescriptorFile) -> DescriptorModel:
    namespace = doc.namespace or get_settings().DEFAULT_NAMESPACE
    for key, spec in doc.components.items():
        model.add(_build_component(key, spec, namespace))
    for key, spec in doc.pages.items():
        model.add(_build_page(key, spec, namespace))
    return model


def _parse_documents(raw: str, origin: str) -> list[DescriptorFile]:
    try:
        docs = list(yaml.safe_load_all(raw))
    except yaml.YAMLError as ye:
        raise DescriptorError(f"YAML parse error in {origin}: {ye}") from ye
    out: list[DescriptorFile] = []
    for idx, data in enumerate(docs, start=1):
        if data is None:
            continue
        if not isinstance(data, dict):
            raise DescriptorError(f"Document {idx} in {origin} must be a mapping/object.")
        try:
            out.append(DescriptorFile.model_validate(_subst_env(data)))
        except ValidationError as ve:
            raise DescriptorError(
                _format_validation_error(ve, f"Invalid descriptor '{origin}' (document {idx}):")
            ) from ve
    if not out:
        raise DescriptorError(f"No descriptor documents found in {origin}")
    return out


# ---------- Public API ----------


def load_descriptor_text(raw: str, *, origin: str = "<string>") -> DescriptorModel:
    """Parse YAML text (one or more documents) into a linked model."""
    model = DescriptorModel()
    for doc in _parse_documents(raw, origin):
        add_document(model, doc)
    return model.link()


def load_descriptor_files(paths: Iterable[Path | str]) -> DescriptorModel:
    """Load several files into one model; references may cross files."""
    model = DescriptorModel()
    count = 0
    for p in paths:
        fp = Path(p)
        if not fp.exists():
            raise FileNotFoundError(f"Descriptor file not found: {fp}")
        for doc in _parse_documents(fp.read_text(encoding="utf-8"), str(fp)):
            add_document(model, doc)
        count += 1
    log.debug(f"Loaded {count} descriptor file(s), {len(model)} node(s)")
    return model.link()


def find_descriptor_files(root: Path, recursive: bool = True) -> list[Path]:
    if recursive:
        return sorted(list(root.rglob("*.yaml")) + list(root.rglob("*.yml")))
    return sorted(list(root.glob("*.yaml")) + list(root.glob("*.yml")))


def load_descriptor_dir(root: Optional[Path | str] = None, *, recursive: bool = True) -> DescriptorModel:
    """Load every descriptor under `root` (defaults to DESCRIPTORS_DIR)."""
    base = Path(root) if root is not None else get_settings().DESCRIPTORS_DIR
    if not base.is_dir():
        raise FileNotFoundError(f"Descriptor directory not found: {base}")
    return load_descriptor_files(find_descriptor_files(base, recursive=recursive))


def parse_component(key: str, value: Union[str, Dict[str, Any]], namespace: str) -> ComponentDescriptor:
    """Build a single (unlinked) descriptor from a python mapping; handy in tests and scripts."""
    try:
        spec = ComponentSpec.model_validate(value)
    except ValidationError as ve:
        raise DescriptorError(_format_validation_error(ve, f"Invalid component '{key}':")) from ve
    return _build_component(key, spec, namespace)


__all__ = [
    "ComponentSpec",
    "PageSpec",
    "DescriptorFile",
    "to_identifier",
    "load_descriptor_text",
    "load_descriptor_files",
    "load_descriptor_dir",
    "find_descriptor_files",
    "parse_component",
]
