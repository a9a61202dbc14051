"""
Tests for RuntimeConfig loading and helpers.
"""

import pytest
from pydantic import BaseModel

from mdx_pipeline.config import RuntimeConfig


def test_defaults():
  config = RuntimeConfig()
  assert config.stage1_transforms == []
  assert config.stage2_transforms == []
  assert config.builtin_transforms is True
  assert config.plugin_settings == {}


def test_camel_case_aliases():
  def t(tree, ctx):
    return None

  config = RuntimeConfig(stage1Transforms=[t], stage2Transforms=["x"])
  assert config.stage1_transforms == [t]
  assert config.stage2_transforms == ["x"]


def test_load_from_pyproject(tmp_path):
  (tmp_path / "pyproject.toml").write_text(
    """
[tool.mdx_pipeline]
stage1_transforms = ["image-autolink"]
builtin_transforms = false
plugin_paths = ["plugins"]

[tool.mdx_pipeline.plugin_settings]
prefix = "doc-"
depth = 2
"""
  )
  nested = tmp_path / "docs" / "guide"
  nested.mkdir(parents=True)

  config = RuntimeConfig.load(search_path=nested, stage1_transforms=["extra"], plugin_settings={"depth": 3})

  assert config.stage1_transforms == ["image-autolink", "extra"]
  assert config.builtin_transforms is False
  assert config.plugin_paths == [(tmp_path / "plugins").resolve()]
  assert config.plugin_settings == {"prefix": "doc-", "depth": 3}


def test_explicit_builtin_override(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[tool.mdx_pipeline]\nbuiltin_transforms = false\n")
  assert RuntimeConfig.load(search_path=tmp_path, builtin_transforms=True).builtin_transforms is True


def test_load_without_section(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[project]\nname = 'x'\n")
  config = RuntimeConfig.load(search_path=tmp_path)
  assert config.stage1_transforms == []
  assert config.builtin_transforms is True


def test_invalid_toml(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[tool.mdx_pipeline\n")
  with pytest.raises(ValueError, match="Invalid TOML"):
    RuntimeConfig.load(search_path=tmp_path)


def test_parse_plugin_settings():
  class Settings(BaseModel):
    prefix: str

  config = RuntimeConfig(plugin_settings={"prefix": "p-"})
  assert config.parse_plugin_settings(Settings).prefix == "p-"

  with pytest.raises(ValueError, match="Plugin configuration validation failed"):
    RuntimeConfig().parse_plugin_settings(Settings)
