"""
Embedded Markup Parser.

Builds the structural view of an embedded-markup block: a list of `text` and
`jsx` nodes obtained by matching opening and closing tags by name and nesting
depth. Each `jsx` node's `value` is the exact source slice of the element;
its `children` are the nodes between its opening and closing tag.

Matching is case-sensitive. An unterminated, mismatched or stray tag is a
`StructuralParseError`: generated code cannot contain unbalanced markup.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from mdx_pipeline.core.errors import StructuralParseError
from mdx_pipeline.core.jsx.tokens import MarkupLexer, MarkupSyntaxError, Token, TokenKind
from mdx_pipeline.core.nodes import LineIndex, Node, Position

# `<https://x>` autolinks and `<a@b.c>` emails are not tag starts
MARKUP_START_RE = re.compile(r"<(?:[A-Za-z_$][\w$.-]*(?=[\s/>]|$)|/[A-Za-z_$>]|>|!--)")


@dataclass
class _Frame:
  """An element whose closing tag has not been seen yet."""

  open_tag: Token
  children: List[Node] = field(default_factory=list)


class MarkupParser:
  """
  Parses embedded markup into `text`/`jsx` nodes.

  Positions are attached when the caller supplies the index of the full
  document and the offset at which `source` starts in it.
  """

  def __init__(
    self,
    source: str,
    index: Optional[LineIndex] = None,
    base_offset: int = 0,
    fallback: Optional[Position] = None,
  ):
    """
    Args:
        source (str): Raw markup text.
        index (LineIndex, optional): Line index of the enclosing document.
        base_offset (int): Offset of `source` inside the document.
        fallback (Position, optional): Position reported when offsets cannot be mapped.
    """
    self.source = source
    self.index = index
    self.base_offset = base_offset
    self.fallback = fallback

  def parse(self) -> List[Node]:
    """
    Parses the whole source as a fragment.

    Returns:
        List[Node]: Top-level `text` and `jsx` nodes in source order.
        Whitespace-only text is dropped.

    Raises:
        StructuralParseError: On malformed or unbalanced tags.
    """
    top: List[Node] = []
    stack: List[_Frame] = []

    try:
      for tok in MarkupLexer(self.source).tokenize():
        siblings = stack[-1].children if stack else top

        if tok.kind == TokenKind.TEXT:
          raw = self.source[tok.start : tok.end]
          if raw.strip():
            siblings.append(Node("text", value=raw, position=self._span(tok.start, tok.end)))
        elif tok.kind == TokenKind.SELF_CLOSING:
          siblings.append(self._jsx(tok.start, tok.end, []))
        elif tok.kind == TokenKind.OPEN_TAG:
          stack.append(_Frame(tok))
        elif tok.kind == TokenKind.CLOSE_TAG:
          if not stack:
            raise self._error(f"Unexpected closing tag </{tok.name}>", tok.start, tok.end)
          frame = stack.pop()
          if frame.open_tag.name != tok.name:
            raise self._error(
              f"Expected closing tag </{frame.open_tag.name}> but found </{tok.name}>",
              tok.start,
              tok.end,
            )
          parent = stack[-1].children if stack else top
          parent.append(self._jsx(frame.open_tag.start, tok.end, frame.children))
    except MarkupSyntaxError as e:
      raise self._error(e.reason, e.offset, e.offset + 1) from e

    if stack:
      unclosed = stack[-1].open_tag
      raise self._error(f"Unterminated <{unclosed.name}> element", unclosed.start, unclosed.end)

    return top

  def _jsx(self, start: int, end: int, children: List[Node]) -> Node:
    return Node(
      "jsx",
      value=self.source[start:end],
      children=children,
      position=self._span(start, end),
    )

  def _span(self, start: int, end: int) -> Optional[Position]:
    if self.index is None:
      return None
    return self.index.span(self.base_offset + start, self.base_offset + end)

  def _error(self, reason: str, start: int, end: int) -> StructuralParseError:
    return StructuralParseError(reason, self._span(start, end) or self.fallback)


def parse_markup_children(
  source: str,
  index: Optional[LineIndex] = None,
  base_offset: int = 0,
  fallback: Optional[Position] = None,
) -> List[Node]:
  """
  Computes the `children` of a `jsx` node built from `source`.

  A block holding a single element exposes that element's inner content;
  a block holding several top-level elements exposes one node per element.

  Args:
      source (str): The exact raw markup.
      index (LineIndex, optional): Line index of the enclosing document.
      base_offset (int): Offset of `source` inside the document.
      fallback (Position, optional): Position used for errors without offsets.

  Returns:
      List[Node]: Child nodes (empty for self-closing or comment-only blocks).
  """
  fragment = MarkupParser(source, index, base_offset, fallback).parse()
  if len(fragment) == 1 and fragment[0].type == "jsx":
    return fragment[0].children or []
  return fragment


def scan_element(src: str, pos: int, limit: Optional[int] = None) -> Optional[int]:
  """
  Finds the end of one balanced element (or comment) starting at `pos`.

  Used by the base parser to capture a whole inline element span as a single
  raw node. Never raises. Balanced-but-mismatched or unclosed tags mean "no
  element here". A real tag start followed by a lexical error (e.g. an
  unterminated attribute value) claims the rest of the window, so the raw
  span reaches the markup parser and fails there.

  Args:
      src (str): Source text.
      pos (int): Offset of the `<`.
      limit (Optional[int]): Exclusive end of the scan window.

  Returns:
      Optional[int]: Offset just past the element, or None.
  """
  end_limit = len(src) if limit is None else limit
  window = src[pos:end_limit]
  names: List[str] = []

  try:
    for tok in MarkupLexer(window).tokenize():
      if not names:
        if tok.start != 0:
          return None
        if tok.kind in (TokenKind.SELF_CLOSING, TokenKind.COMMENT):
          return pos + tok.end
        if tok.kind != TokenKind.OPEN_TAG:
          return None
        names.append(tok.name)
        continue

      if tok.kind == TokenKind.OPEN_TAG:
        names.append(tok.name)
      elif tok.kind == TokenKind.CLOSE_TAG:
        if names.pop() != tok.name:
          return None
        if not names:
          return pos + tok.end
  except MarkupSyntaxError:
    if names or MARKUP_START_RE.match(window):
      return end_limit
    return None

  return None
