"""
Script Literal Scanning.

Small helpers shared by the embedded-markup lexer and the import/export
statement scanner. Both need to step over JavaScript string, template and
comment literals so that brackets or angle brackets inside them are not
mistaken for structure.
"""

from typing import Optional

OPENERS = {"{": "}", "[": "]", "(": ")"}
CLOSERS = {v: k for k, v in OPENERS.items()}


def skip_literal(src: str, pos: int) -> Optional[int]:
  """
  Steps over a literal starting at `pos`.

  Recognizes '...' and "..." strings, `...` templates (with backslash
  escapes), `// line` comments and `/* block */` comments. An unterminated
  literal consumes the rest of the input.

  Args:
      src (str): Source text.
      pos (int): Offset to inspect.

  Returns:
      Optional[int]: Offset just past the literal, or None if no literal starts at `pos`.
  """
  ch = src[pos]
  n = len(src)

  if ch in "'\"`":
    i = pos + 1
    while i < n:
      c = src[i]
      if c == "\\":
        i += 2
        continue
      if c == ch:
        return i + 1
      # Plain strings cannot span lines
      if c == "\n" and ch != "`":
        return i
      i += 1
    return n

  if src.startswith("//", pos):
    end = src.find("\n", pos)
    return n if end == -1 else end

  if src.startswith("/*", pos):
    end = src.find("*/", pos + 2)
    return n if end == -1 else end + 2

  return None


def scan_braces(src: str, pos: int, limit: Optional[int] = None) -> Optional[int]:
  """
  Finds the end of a balanced `{...}` group starting at `pos`.

  Nested `{}`, `[]` and `()` must close in order; literals are skipped.

  Args:
      src (str): Source text.
      pos (int): Offset of the opening brace.
      limit (Optional[int]): Exclusive upper bound for the scan.

  Returns:
      Optional[int]: Offset just past the matching `}`, or None when the group
      is unbalanced within the limit.
  """
  end_limit = len(src) if limit is None else limit
  stack = []
  i = pos
  while i < end_limit:
    c = src[i]
    skipped = skip_literal(src, i)
    if skipped is not None:
      i = skipped
      continue
    if c in OPENERS:
      stack.append(OPENERS[c])
    elif c in CLOSERS:
      if not stack or stack.pop() != c:
        return None
      if not stack:
        return i + 1
    i += 1
  return None
