"""
Pipeline Error Taxonomy.

Every failure inside the compiler is fatal and carries as much attribution as
is known at the point of failure:

- `StructuralParseError`: the source (or a tree handed across a stage boundary)
  cannot be decomposed into a well-formed tree.
- `TransformError`: a caller-supplied transform raised or rejected.
- `CodeGenerationError`: the code generator could not render the markup tree.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
  from mdx_pipeline.core.nodes import Position


class MdxError(Exception):
  """Base class for all compiler errors."""


class StructuralParseError(MdxError):
  """
  Raised when source text or a tree is structurally malformed.

  Attributes:
      reason (str): Human readable description without location.
      position (Optional[Position]): Best-known source span of the failure.
  """

  def __init__(self, reason: str, position: Optional["Position"] = None):
    self.reason = reason
    self.position = position
    super().__init__(_located(reason, position))


class TransformError(MdxError):
  """
  Raised when a user-supplied transform fails.

  Attributes:
      stage (str): Pipeline checkpoint ("stage1" or "stage2").
      index (int): Position of the failing transform in its list.
      name (str): Qualified name of the failing callable.
      original (BaseException): The underlying exception.
  """

  def __init__(self, stage: str, index: int, name: str, original: BaseException):
    self.stage = stage
    self.index = index
    self.name = name
    self.original = original
    super().__init__(f"Transform #{index} ({name}) failed during {stage}: {original}")


class CodeGenerationError(MdxError):
  """
  Raised by the code generator when the markup tree cannot be rendered.

  Attributes:
      reason (str): Human readable description without location.
      position (Optional[Position]): Source span of the offending node, if known.
  """

  def __init__(self, reason: str, position: Optional["Position"] = None):
    self.reason = reason
    self.position = position
    super().__init__(_located(reason, position))


def _located(reason: str, position: Optional["Position"]) -> str:
  if position is None:
    return reason
  return f"{position.start.line}:{position.start.column}: {reason}"
