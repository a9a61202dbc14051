"""
mdx-pipeline Package.

A multi-stage compiler turning MDX documents (Markdown with embedded JSX and
ES module `import`/`export` statements) into a JSX module, with two
checkpoints where transforms can observe and rewrite the tree.

Usage
-----

Simple String Compilation
^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import mdx_pipeline as mdx
    code = mdx.compile_mdx("# Hello\\n\\n<Video />")

Transforms
^^^^^^^^^^

.. code-block:: python

    from mdx_pipeline import MdxEngine, RuntimeConfig, find_all

    def shout(tree, context):
        for node in find_all(tree, "text"):
            node.value = node.value.upper()

    engine = MdxEngine(RuntimeConfig(stage1_transforms=[shout]))
    result = engine.compile_sync("hello *world*")
"""

from typing import Any, Optional

from mdx_pipeline.config import RuntimeConfig
from mdx_pipeline.core.engine import CompileResult, MdxEngine
from mdx_pipeline.core.errors import CodeGenerationError, MdxError, StructuralParseError, TransformError
from mdx_pipeline.core.hooks import TransformContext, register_transform
from mdx_pipeline.core.nodes import Node
from mdx_pipeline.core.walker import find_all, walk

__version__ = "0.1.0"


def _configure(config: Optional[RuntimeConfig], overrides: Any) -> RuntimeConfig:
  if config is None:
    return RuntimeConfig(**overrides)
  if overrides:
    return config.model_copy(update=overrides)
  return config


async def compile_mdx_async(text: str, config: Optional[RuntimeConfig] = None, **overrides: Any) -> str:
  """
  Compiles an MDX document to a JSX module (coroutine).

  Args:
      text (str): The MDX source.
      config (RuntimeConfig, optional): Configuration. Defaults to an empty
          configuration (built-in transforms only), not the project file.
      **overrides: RuntimeConfig fields replacing those of `config`
          (e.g. `stage1_transforms=[...]`).

  Returns:
      str: The generated code.

  Raises:
      StructuralParseError: On malformed markup or statements.
      TransformError: If a transform fails.
      CodeGenerationError: If the final tree cannot be rendered.
      ValueError: If a configured transform cannot be resolved.
  """
  engine = MdxEngine(config=_configure(config, overrides))
  return await engine.compile(text)


def compile_mdx(text: str, config: Optional[RuntimeConfig] = None, **overrides: Any) -> str:
  """
  Blocking variant of `compile_mdx_async`.

  Must not be called from inside a running event loop.
  """
  engine = MdxEngine(config=_configure(config, overrides))
  return engine.compile_sync(text)


__all__ = [
  "CodeGenerationError",
  "CompileResult",
  "MdxEngine",
  "MdxError",
  "Node",
  "RuntimeConfig",
  "StructuralParseError",
  "TransformContext",
  "TransformError",
  "compile_mdx",
  "compile_mdx_async",
  "find_all",
  "register_transform",
  "walk",
  "__version__",
]
