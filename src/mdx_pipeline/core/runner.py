"""
Transform Runner.

Applies an ordered list of transforms to a tree, strictly one after another.
Each transform sees the tree left by its predecessor; an asynchronous
transform is awaited before the next one starts. The first failure aborts the
sequence; transforms that already ran are not rolled back.
"""

import inspect
from typing import List, Optional, Sequence

from mdx_pipeline.core.errors import TransformError
from mdx_pipeline.core.hooks import TransformContext, TransformFunction, transform_name
from mdx_pipeline.core.nodes import Node
from mdx_pipeline.core.tracer import TraceLogger
from mdx_pipeline.utils.console import log_debug


class TransformRunner:
  """
  Sequential interpreter over a list of transforms for one stage.
  """

  def __init__(self, transforms: Sequence[TransformFunction], stage: str, tracer: Optional[TraceLogger] = None):
    """
    Args:
        transforms: Callables in application order.
        stage: Checkpoint label ("stage1" or "stage2") used in errors and traces.
        tracer: Optional trace sink.
    """
    self.transforms: List[TransformFunction] = list(transforms)
    self.stage = stage
    self.tracer = tracer

  async def run(self, tree: Node, context: TransformContext) -> Node:
    """
    Runs every transform in order.

    Args:
        tree (Node): The tree handed to the first transform.
        context (TransformContext): Shared file context.

    Returns:
        Node: The tree after the last transform (the input object itself
        when no transform returned a replacement).

    Raises:
        TransformError: Wrapping the first exception raised by a transform,
            or a TypeError when a transform returns something other than a
            Node or None.
    """
    context.stage = self.stage
    current = tree

    for index, transform in enumerate(self.transforms):
      name = transform_name(transform)
      context.current_transform = name
      try:
        result = transform(current, context)
        if inspect.isawaitable(result):
          result = await result
        if result is not None and not isinstance(result, Node):
          raise TypeError(f"Transform returned {type(result).__name__}, expected a Node or None")
      except Exception as e:
        raise TransformError(self.stage, index, name, e) from e
      finally:
        context.current_transform = None

      replaced = result is not None
      if replaced:
        current = result

      log_debug(f"{self.stage}: applied #{index} {name}")
      if self.tracer is not None:
        self.tracer.log_transform(self.stage, index, name, replaced)

    return current
