"""
uipom
-----
Page/component object model compiled from YAML descriptors, with waiting
conditions and actions over a browser driver.

Lightweight package init; import submodules directly, e.g.:
  from uipom.core.space import Space, compile_descriptors
  from uipom.core.session import open_space
"""

__version__ = "0.1.0"

__all__: list[str] = []
