"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Global transform registry isolation so that tests registering their own
  transforms do not leak into each other.
- Small tree-building helpers shared across test modules.
"""

import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'mdx_pipeline' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import mdx_pipeline.core.hooks as hooks  # noqa: E402
from mdx_pipeline.core.nodes import Node  # noqa: E402

# Load bundled plugins once so the snapshot below is the "clean" baseline
hooks.load_plugins()


@pytest.fixture(autouse=True)
def isolate_transform_registry():
  """
  Restores the transform registry after every test.
  """
  original = dict(hooks._TRANSFORMS)
  loaded = hooks._PLUGINS_LOADED
  yield
  hooks._TRANSFORMS.clear()
  hooks._TRANSFORMS.update(original)
  hooks._PLUGINS_LOADED = loaded


@pytest.fixture
def paragraph():
  """Factory for a paragraph holding a single text node."""

  def _make(value: str) -> Node:
    return Node("paragraph", children=[Node("text", value=value)])

  return _make
