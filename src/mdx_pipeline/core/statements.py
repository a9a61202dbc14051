"""
Import/Export Statement Scanner.

Splits a run of ES-module statement lines into individual statements.

Rules:
    - A statement starts on a line beginning (after spaces/tabs) with the
      keyword `import` or `export` followed by a token boundary.
    - It ends at the first line break where all `{}`, `[]` and `()` groups
      are closed (string, template and comment literals are skipped). While
      a group is open, following lines (blank ones included) belong to it.
    - The run continues while the next line starts another statement, and
      ends at the line break after the last one (or at end of input).
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from mdx_pipeline.core.errors import StructuralParseError
from mdx_pipeline.core.lexing import CLOSERS, OPENERS, skip_literal
from mdx_pipeline.core.nodes import LineIndex, Position

STATEMENT_RE = re.compile(r"[ \t]*(import|export)(?=[\s{*]|$)")


@dataclass
class Statement:
  """
  A located statement.

  Attributes:
      kind (str): "import" or "export".
      start (int): Offset of the keyword.
      end (int): Offset just past the statement, trailing whitespace excluded.
  """

  kind: str
  start: int
  end: int


def statement_keyword(src: str, pos: int = 0) -> Optional[str]:
  """Returns "import"/"export" if a statement starts at the line beginning at `pos`."""
  m = STATEMENT_RE.match(src, pos)
  return m.group(1) if m else None


def split_statements(src: str, pos: int = 0, index: Optional[LineIndex] = None) -> Tuple[List[Statement], int]:
  """
  Scans the statement run beginning at the line starting at `pos`.

  Args:
      src (str): Source text.
      pos (int): Offset of the first line of the run.
      index (LineIndex, optional): Index of `src` for error positions.

  Returns:
      Tuple[List[Statement], int]: The statements in order, and the offset
      at which the run ends (a line break or the end of input).

  Raises:
      StructuralParseError: If no statement starts at `pos`, or a statement
          has mismatched or unclosed brackets.
  """
  n = len(src)
  statements: List[Statement] = []
  line_start = pos

  while True:
    m = STATEMENT_RE.match(src, line_start)
    if not m:
      raise StructuralParseError("Expected an import or export statement", _locate(index, line_start, line_start))
    kind = m.group(1)
    stmt_start = m.start(1)
    stack: List[Tuple[str, int]] = []
    i = stmt_start

    while True:
      if i >= n:
        if stack:
          closer, opened_at = stack[-1]
          raise StructuralParseError(
            f"Unbalanced bracket in {kind} statement: missing '{closer}' before end of document",
            _locate(index, opened_at, opened_at + 1),
          )
        break

      c = src[i]
      skipped = skip_literal(src, i)
      if skipped is not None:
        i = skipped
        continue

      if c in OPENERS:
        stack.append((OPENERS[c], i))
      elif c in CLOSERS:
        if not stack or stack[-1][0] != c:
          raise StructuralParseError(f"Unexpected '{c}' in {kind} statement", _locate(index, i, i + 1))
        stack.pop()
      elif c == "\n" and not stack:
        break
      i += 1

    end = i
    while end > stmt_start and src[end - 1].isspace():
      end -= 1
    statements.append(Statement(kind, stmt_start, end))

    if i >= n or not statement_keyword(src, i + 1):
      return statements, min(i, n)
    line_start = i + 1


def _locate(index: Optional[LineIndex], start: int, end: int) -> Optional[Position]:
  if index is None:
    return None
  return index.span(start, end)
