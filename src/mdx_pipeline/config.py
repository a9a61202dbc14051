"""
Runtime Configuration Store.

Options are read from the `[tool.mdx_pipeline]` table of the nearest
`pyproject.toml` and can be overridden programmatically::

    [tool.mdx_pipeline]
    stage1_transforms = ["image-autolink", "my_pkg.transforms:add_ids"]
    stage2_transforms = []
    builtin_transforms = true
    plugin_paths = ["./mdx_plugins"]

    [tool.mdx_pipeline.plugin_settings]
    id_prefix = "doc-"
"""

import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

T = TypeVar("T", bound=BaseModel)


class RuntimeConfig(BaseModel):
  """
  Configuration container for one compile.

  Transform lists hold callables, registered transform names, or
  "module:attr" import paths; they are resolved by the engine.
  """

  model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

  stage1_transforms: List[Any] = Field(
    default_factory=list,
    alias="stage1Transforms",
    description="Transforms applied to the extended tree, in order.",
  )
  stage2_transforms: List[Any] = Field(
    default_factory=list,
    alias="stage2Transforms",
    description="Transforms applied to the markup tree, in order.",
  )
  builtin_transforms: bool = Field(True, description="Prepend the bundled built-in transforms to each stage.")
  plugin_settings: Dict[str, Any] = Field(default_factory=dict, description="Configuration passed to transforms.")
  plugin_paths: List[Path] = Field(default_factory=list, description="External directories to scan for plugins.")

  def parse_plugin_settings(self, schema: Type[T]) -> T:
    """
    Validates the plugin settings against a transform-specific Pydantic model.

    Only the keys the model declares are considered; settings meant for
    other transforms are ignored.

    Args:
        schema (Type[T]): The Pydantic model class defining expected settings.

    Returns:
        T: An instance of the schema model populated with runtime values.

    Raises:
        ValueError: If the settings do not satisfy the schema.
    """
    relevant_keys = schema.model_fields.keys()
    subset = {k: v for k, v in self.plugin_settings.items() if k in relevant_keys}
    try:
      return schema.model_validate(subset)
    except ValidationError as e:
      raise ValueError(f"Plugin configuration validation failed: {e}") from e

  @classmethod
  def load(
    cls,
    stage1_transforms: Optional[List[Any]] = None,
    stage2_transforms: Optional[List[Any]] = None,
    builtin_transforms: Optional[bool] = None,
    plugin_settings: Optional[Dict[str, Any]] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and applies explicit overrides.

    Transform lists given here extend (not replace) the ones from the file.

    Args:
        stage1_transforms (Optional[List]): Extra stage-1 transforms.
        stage2_transforms (Optional[List]): Extra stage-2 transforms.
        builtin_transforms (Optional[bool]): Override for built-in transforms.
        plugin_settings (Optional[Dict]): Settings merged over the file's.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, toml_dir = _load_toml_settings(start_dir)

    final_stage1 = list(toml_config.get("stage1_transforms", [])) + list(stage1_transforms or [])
    final_stage2 = list(toml_config.get("stage2_transforms", [])) + list(stage2_transforms or [])

    if builtin_transforms is not None:
      final_builtins = builtin_transforms
    else:
      final_builtins = bool(toml_config.get("builtin_transforms", True))

    final_plugins = {**toml_config.get("plugin_settings", {}), **(plugin_settings or {})}

    raw_paths = toml_config.get("plugin_paths", [])
    if toml_dir:
      final_plugin_paths = [(toml_dir / Path(p)).resolve() for p in raw_paths]
    else:
      final_plugin_paths = [Path(p).resolve() for p in raw_paths]

    return cls(
      stage1_transforms=final_stage1,
      stage2_transforms=final_stage2,
      builtin_transforms=final_builtins,
      plugin_settings=final_plugins,
      plugin_paths=final_plugin_paths,
    )


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches `start_path` and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.

  Raises:
      ValueError: If the nearest pyproject.toml is not valid TOML.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {toml_path}: {e}") from e
      return data.get("tool", {}).get("mdx_pipeline", {}), parent

  return {}, None
