"""
Transform Registry, Transform Context, and Dynamic Loader.

This module provides the infrastructure for extending mdx-pipeline via
plugins. A plugin is a transform: a callable that receives the current tree
and a `TransformContext`, and either mutates the tree in place (returning
None) or returns a replacement tree. It may be synchronous or a coroutine
function.

Transforms are registered by name for one of the two checkpoints:

- `stage1`: runs on the extended tree (after the Extension Transpiler).
- `stage2`: runs on the markup tree (after the Markup Transpiler).

Configuration refers to transforms by callable, by registered name, or by a
`"package.module:attribute"` import path.
"""

import importlib
import importlib.util
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field

from mdx_pipeline.config import RuntimeConfig
from mdx_pipeline.core.nodes import Node
from mdx_pipeline.core.tracer import TraceLogger
from mdx_pipeline.utils.console import log_warning

T = TypeVar("T", bound=BaseModel)

STAGES = ("stage1", "stage2")


class TransformMessage(BaseModel):
  """
  A diagnostic recorded by a transform. Messages never abort a compile.
  """

  reason: str = Field(description="Human readable description.")
  stage: Optional[str] = Field(None, description="Checkpoint the message was recorded at.")
  transform: Optional[str] = Field(None, description="Name of the reporting transform, if known.")
  line: Optional[int] = Field(None, description="1-based line of the related node.")
  column: Optional[int] = Field(None, description="1-based column of the related node.")


class TransformContext:
  """
  Auxiliary file context passed to every transform.

  Provides read-only access to the document and configuration, a scratch
  `metadata` dict shared by all transforms of one compile, and a message log.
  """

  def __init__(
    self,
    config: Optional[RuntimeConfig] = None,
    source: str = "",
    path: Optional[Path] = None,
    tracer: Optional[TraceLogger] = None,
  ):
    """
    Initializes the context.

    Args:
        config: Runtime configuration (plugin settings).
        source: The full document text being compiled.
        path: Path of the document, when compiled from a file.
        tracer: Trace of the current compile; messages are recorded in it.
    """
    self._runtime_config = config or RuntimeConfig()
    self.source = source
    self.path = path
    self.tracer = tracer
    self.stage: Optional[str] = None
    self.current_transform: Optional[str] = None
    self.metadata: Dict[str, Any] = {}
    self.messages: List[TransformMessage] = []

  def message(self, reason: str, node: Optional[Node] = None) -> TransformMessage:
    """
    Records a non-fatal diagnostic and logs it as a warning.

    Args:
        reason: Description of the issue.
        node: The node the message is about, used for its position.

    Returns:
        TransformMessage: The recorded message.
    """
    start = node.position.start if node is not None and node.position is not None else None
    msg = TransformMessage(
      reason=reason,
      stage=self.stage,
      transform=self.current_transform,
      line=start.line if start else None,
      column=start.column if start else None,
    )
    self.messages.append(msg)
    if self.tracer is not None:
      self.tracer.log_warning(reason, msg.model_dump(exclude={"reason"}))
    where = f"{msg.line}:{msg.column}: " if start else ""
    log_warning(f"{where}{reason}")
    return msg

  def raw_config(self, key: str, default: Any = None) -> Any:
    """Retrieve a raw value from the unstructured plugin settings dict."""
    return self._runtime_config.plugin_settings.get(key, default)

  def validate_settings(self, model: Type[T]) -> T:
    """
    Validates global plugin settings against a transform-specific Pydantic schema.

    Raises:
        ValueError: If the settings do not satisfy the schema.
    """
    return self._runtime_config.parse_plugin_settings(model)


TransformResult = Union[Optional[Node], Awaitable[Optional[Node]]]
TransformFunction = Callable[[Node, TransformContext], TransformResult]


class RegisteredTransform(BaseModel):
  """Registry entry."""

  name: str
  stage: str
  func: Any
  builtin: bool = False


# Global Registry
_TRANSFORMS: Dict[str, RegisteredTransform] = {}
_PLUGINS_LOADED = False


def register_transform(
  name: str, stage: str = "stage1", builtin: bool = False
) -> Callable[[TransformFunction], TransformFunction]:
  """
  Decorator to register a function as a named transform.

  Args:
      name: Unique identifier used in configuration.
      stage: "stage1" or "stage2".
      builtin: If True the transform runs by default (unless the
               configuration disables built-ins).

  Raises:
      ValueError: If `stage` is not a known checkpoint.
  """
  if stage not in STAGES:
    raise ValueError(f"Unknown transform stage '{stage}'. Expected one of {STAGES}")

  def decorator(func: TransformFunction) -> TransformFunction:
    _TRANSFORMS[name] = RegisteredTransform(name=name, stage=stage, func=func, builtin=builtin)
    func.transform_name = name
    return func

  return decorator


def get_transform(name: str) -> Optional[RegisteredTransform]:
  """
  Retrieves a registered transform by name.
  Lazily loads the bundled plugins if not done yet.
  """
  if not _PLUGINS_LOADED:
    load_plugins()
  return _TRANSFORMS.get(name)


def list_transforms(stage: Optional[str] = None) -> List[str]:
  """Names of registered transforms, in registration order."""
  if not _PLUGINS_LOADED:
    load_plugins()
  return [t.name for t in _TRANSFORMS.values() if stage is None or t.stage == stage]


def builtin_transforms(stage: str) -> List[TransformFunction]:
  """Built-in transforms of a stage, in registration order."""
  if not _PLUGINS_LOADED:
    load_plugins()
  return [t.func for t in _TRANSFORMS.values() if t.builtin and t.stage == stage]


def clear_transforms() -> None:
  """Resets the internal registry. Primarily for testing."""
  global _PLUGINS_LOADED
  _TRANSFORMS.clear()
  _PLUGINS_LOADED = False


def transform_name(func: Any) -> str:
  """Display name of a transform callable."""
  name = getattr(func, "transform_name", None)
  if name:
    return name
  return getattr(func, "__qualname__", None) or getattr(func, "__name__", None) or type(func).__name__


def resolve_transform(ref: Union[str, TransformFunction], stage: str) -> TransformFunction:
  """
  Turns a configuration entry into a callable.

  Args:
      ref: A callable, a registered name, or a "module:attr" import path.
      stage: The checkpoint the transform is configured for.

  Returns:
      TransformFunction: The callable.

  Raises:
      ValueError: If the name is unknown, registered for the other stage,
          or the import path cannot be resolved to a callable.
  """
  if callable(ref):
    return ref

  if not isinstance(ref, str) or not ref.strip():
    raise ValueError(f"Invalid transform reference: {ref!r}")

  if ":" in ref:
    module_name, _, attr = ref.partition(":")
    try:
      module = importlib.import_module(module_name)
    except ImportError as e:
      raise ValueError(f"Cannot import transform module '{module_name}': {e}") from e
    func = getattr(module, attr, None)
    if not callable(func):
      raise ValueError(f"'{ref}' does not name a callable transform")
    return func

  entry = get_transform(ref)
  if entry is None:
    raise ValueError(f"Unknown transform '{ref}'. Registered: {list_transforms()}")
  if entry.stage != stage:
    raise ValueError(f"Transform '{ref}' is registered for {entry.stage}, not {stage}")
  return entry.func


def load_plugins(plugins_dir: Optional[Path] = None, extra_dirs: Optional[List[Path]] = None) -> int:
  """
  Dynamically imports plugins.

  Args:
      plugins_dir: Overrides the default package directory.
                   If provided, this directory is scanned for .py files.
                   If NOT provided, the bundled `mdx_pipeline.plugins` package is loaded.
      extra_dirs: Additional directories to scan (e.g. user extensions).

  Returns:
      int: Number of modules loaded.
  """
  global _PLUGINS_LOADED
  total_loaded = 0

  if not _PLUGINS_LOADED and plugins_dir is None:
    _PLUGINS_LOADED = True
    import mdx_pipeline.plugins as bundled

    # Re-import after clear_transforms(): decorators only run on first import
    for module_name in bundled.MODULES:
      module = sys.modules.get(module_name)
      if module is not None:
        importlib.reload(module)
      else:
        importlib.import_module(module_name)
    total_loaded += len(bundled.MODULES)

  if plugins_dir and plugins_dir.exists() and plugins_dir.is_dir():
    total_loaded += _import_from_dir(plugins_dir)
    _PLUGINS_LOADED = True

  if extra_dirs:
    for ex_dir in extra_dirs:
      if ex_dir.exists() and ex_dir.is_dir():
        total_loaded += _import_from_dir(ex_dir)

  return total_loaded


def _import_from_dir(directory: Path) -> int:
  """Imports every python file of a directory by path."""
  count = 0
  for item in sorted(directory.glob("*.py")):
    if item.name == "__init__.py":
      continue
    unique_name = f"mdx_pipeline_plugin_{item.stem}_{item.stat().st_ino}"
    spec = importlib.util.spec_from_file_location(unique_name, item)
    if spec is None or spec.loader is None:
      continue
    mod = importlib.util.module_from_spec(spec)
    sys.modules[unique_name] = mod
    try:
      spec.loader.exec_module(mod)
    except Exception:
      del sys.modules[unique_name]
      raise
    count += 1
  return count
