"""
Orchestration Engine.

This module provides the `MdxEngine`, the driver for one compile. The
pipeline is strictly linear:

1.  **Parse**: raw text -> generic tree (markdown-it-py base parser).
2.  **Stage 1**: Extension Transpiler -> extended tree (`jsx`, `import`,
    `export` recognized).
3.  **Stage-1 transforms**: the configured transforms, in order.
4.  **Stage 2**: Markup Transpiler -> markup tree.
5.  **Stage-2 transforms**: the configured transforms, in order.
6.  **Codegen**: markup tree -> JSX module string.

Every error propagates to the caller unchanged; nothing is retried or
recovered. A failure in stage-1 transforms means Stage 2 and the stage-2
transforms never run.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from mdx_pipeline.config import RuntimeConfig
from mdx_pipeline.core.base_parser import MarkdownParser
from mdx_pipeline.core.codegen import CodeGenerator
from mdx_pipeline.core.errors import MdxError
from mdx_pipeline.core.extension import ExtensionTranspiler
from mdx_pipeline.core.hooks import (
  TransformContext,
  TransformFunction,
  TransformMessage,
  builtin_transforms,
  load_plugins,
  resolve_transform,
)
from mdx_pipeline.core.markup import MarkupTranspiler
from mdx_pipeline.core.nodes import EXTENDED_KINDS, MARKUP_KINDS, Node
from mdx_pipeline.core.runner import TransformRunner
from mdx_pipeline.core.tracer import TraceLogger
from mdx_pipeline.core.walker import iter_nodes, validate_tree
from mdx_pipeline.utils.console import log_debug, log_error, log_success


class CompileResult(BaseModel):
  """
  Structured result of a single compile.
  """

  code: str = Field(default="", description="The generated module source.")
  markup_tree: Dict[str, Any] = Field(default_factory=dict, description="Serialized final markup tree.")
  messages: List[TransformMessage] = Field(default_factory=list, description="Diagnostics recorded by transforms.")
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="A log of internal trace events.")

  @property
  def has_messages(self) -> bool:
    return len(self.messages) > 0


class MdxEngine:
  """
  The compilation unit.

  Transform references are resolved when the engine is built, so a bad
  configuration fails before any document is touched.
  """

  def __init__(
    self,
    config: Optional[RuntimeConfig] = None,
    parser: Optional[MarkdownParser] = None,
    generator: Optional[CodeGenerator] = None,
  ):
    """
    Initializes the Engine.

    Args:
        config (RuntimeConfig, optional): Runtime configuration. Loaded from
            the nearest pyproject.toml if omitted.
        parser (MarkdownParser, optional): Base parser override.
        generator (CodeGenerator, optional): Code generator override.

    Raises:
        ValueError: If a configured transform cannot be resolved.
    """
    self.config = config if config is not None else RuntimeConfig.load()
    self.parser = parser or MarkdownParser()
    self.generator = generator or CodeGenerator()

    load_plugins(extra_dirs=self.config.plugin_paths)

    self.stage1_transforms = self._resolve("stage1", self.config.stage1_transforms)
    self.stage2_transforms = self._resolve("stage2", self.config.stage2_transforms)

  def _resolve(self, stage: str, refs: List[Any]) -> List[TransformFunction]:
    resolved = [resolve_transform(ref, stage) for ref in refs]
    if self.config.builtin_transforms:
      resolved = builtin_transforms(stage) + resolved
    return resolved

  async def run(self, text: str, path: Optional[Path] = None) -> CompileResult:
    """
    Executes the full pipeline.

    Args:
        text (str): The MDX document.
        path (Path, optional): Where the document came from, for transforms.

    Returns:
        CompileResult: Generated code, final markup tree and diagnostics.

    Raises:
        StructuralParseError: On malformed markup or statements, or unmapped kinds.
        TransformError: If a transform fails.
        CodeGenerationError: If the markup tree cannot be rendered.
    """
    tracer = TraceLogger()
    context = TransformContext(self.config, source=text, path=path, tracer=tracer)
    label = str(path) if path else "<string>"

    tracer.start_phase("Compile", label)
    try:
      tracer.start_phase("Parse", "Markdown -> generic tree")
      generic = self.parser.parse(text)
      tracer.log_mutation("Parse", "(raw text)", _summary(generic))
      tracer.end_phase()

      tracer.start_phase("Stage 1", "Generic tree -> extended tree")
      extended = ExtensionTranspiler(text).transpile(generic)
      tracer.log_mutation("Stage 1", _summary(generic), _summary(extended))
      tracer.end_phase()

      tracer.start_phase("Stage 1 Transforms", f"{len(self.stage1_transforms)} transform(s)")
      extended = await TransformRunner(self.stage1_transforms, "stage1", tracer).run(extended, context)
      validate_tree(extended, EXTENDED_KINDS, "stage1 transforms")
      tracer.end_phase()

      tracer.start_phase("Stage 2", "Extended tree -> markup tree")
      markup = MarkupTranspiler().transpile(extended)
      tracer.log_mutation("Stage 2", _summary(extended), _summary(markup))
      tracer.end_phase()

      tracer.start_phase("Stage 2 Transforms", f"{len(self.stage2_transforms)} transform(s)")
      markup = await TransformRunner(self.stage2_transforms, "stage2", tracer).run(markup, context)
      validate_tree(markup, MARKUP_KINDS, "stage2 transforms")
      tracer.end_phase()

      tracer.start_phase("Codegen", "Markup tree -> JSX")
      code = self.generator.generate(markup)
      tracer.end_phase()
    except MdxError as e:
      log_error(f"{label}: {e}")
      raise

    tracer.end_phase()
    log_success(f"Compiled {label}")
    log_debug(f"{len(context.messages)} message(s), {len(tracer.export())} trace event(s)")

    return CompileResult(
      code=code,
      markup_tree=markup.to_dict(),
      messages=list(context.messages),
      trace_events=tracer.export(),
    )

  async def compile(self, text: str) -> str:
    """Compiles `text` and returns only the generated code."""
    result = await self.run(text)
    return result.code

  def compile_sync(self, text: str) -> str:
    """
    Blocking variant of `compile`.

    Must not be called from inside a running event loop.
    """
    return asyncio.run(self.compile(text))

  def compile_file(self, path: Union[str, Path]) -> CompileResult:
    """
    Reads a UTF-8 document from disk and compiles it (blocking).

    Args:
        path: Location of the `.mdx` file.

    Returns:
        CompileResult: The compile result.
    """
    file_path = Path(path)
    text = file_path.read_text(encoding="utf-8")
    return asyncio.run(self.run(text, path=file_path))


def _summary(tree: Node) -> str:
  return f"{sum(1 for _ in iter_nodes(tree))} nodes"
