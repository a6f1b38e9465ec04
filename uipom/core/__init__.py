"""
Core package for uipom.
Lightweight package init to avoid import cycles.

Consumers should import submodules directly, e.g.:
  from uipom.core.descriptor_loader import load_descriptor_dir
  from uipom.core.compiler import DescriptorCompiler
  from uipom.core.space import Space, SpaceOptions
"""

__all__: list[str] = []
