"""
Plugins Package.

Bundled transforms. Every module in this package is discovered
automatically and imported on the first registry lookup, so adding a file
(e.g. `my_transform.py`) registers its transforms without editing this file.
"""

import pkgutil
from pathlib import Path

_pkg_dir = Path(__file__).parent

MODULES = sorted(
  f"{__name__}.{module_name}"
  for _, module_name, _ in pkgutil.iter_modules([str(_pkg_dir)])
  if not module_name.startswith("_")
)
