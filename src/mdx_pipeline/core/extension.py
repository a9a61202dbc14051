"""
Extension Transpiler (Stage 1).

Rewrites the generic tree into the extended tree:

1.  **Statements**: root-level paragraphs that open with `import`/`export`
    are replaced, together with every root node their statements cover, by
    one `import`/`export` node per statement. Node values are exact source
    substrings.
2.  **Embedded markup**: every `html` node, at any depth, is reclassified as
    `jsx`; its children are parsed with the embedded-markup grammar.
3.  Everything else passes through unchanged.

The input tree is not modified; a fresh extended tree is returned.
"""

import copy
from typing import List, Optional, Tuple

from mdx_pipeline.core.errors import StructuralParseError
from mdx_pipeline.core.jsx.parser import parse_markup_children
from mdx_pipeline.core.nodes import EXTENDED_KINDS, GENERIC_KINDS, LineIndex, Node, Position, literal_text
from mdx_pipeline.core.statements import split_statements, statement_keyword
from mdx_pipeline.core.walker import NodeVisitor, VisitResult, validate_tree, walk


class MarkupReclassifier(NodeVisitor):
  """
  Visitor turning raw `html` nodes into `jsx` nodes.
  """

  def __init__(self, source: Optional[str] = None, index: Optional[LineIndex] = None):
    self.source = source
    self.index = index

  def visit_html(self, node: Node, ancestors: List[Node]) -> VisitResult:
    value = node.value or ""
    base = self._base_offset(node, value)
    # Inline markup carries no position of its own
    fallback = node.position or next((a.position for a in reversed(ancestors) if a.position is not None), None)
    children = parse_markup_children(
      value,
      index=self.index if base is not None else None,
      base_offset=base or 0,
      fallback=fallback,
    )
    return Node("jsx", value=value, children=children, position=node.position, props=dict(node.props))

  def _base_offset(self, node: Node, value: str) -> Optional[int]:
    """Offset of `value` in the document, if the node maps onto it verbatim."""
    if self.source is None or node.position is None:
      return None
    start = node.position.start.offset
    if self.source[start : start + len(value)] == value:
      return start
    return None


class ExtensionTranspiler:
  """
  Generic tree -> extended tree.
  """

  def __init__(self, source: Optional[str] = None):
    """
    Args:
        source (str, optional): The document text the tree was parsed from.
            Needed for exact statement values and child positions; without it
            statements are read from paragraph text.
    """
    self.source = source
    self.index = LineIndex(source) if source is not None else None

  def transpile(self, tree: Node) -> Node:
    """
    Produces the extended tree.

    Args:
        tree (Node): Generic tree from the base parser.

    Returns:
        Node: A new tree in the extended vocabulary.

    Raises:
        StructuralParseError: On unbalanced markup or statements, or on
            kinds outside the generic vocabulary.
    """
    validate_tree(tree, GENERIC_KINDS, "parse")
    extended = copy.deepcopy(tree)

    extended.children = self._extract_statements(extended.children or [])
    extended = walk(extended, MarkupReclassifier(self.source, self.index))

    validate_tree(extended, EXTENDED_KINDS, "stage1")
    return extended

  def _extract_statements(self, children: List[Node]) -> List[Node]:
    out: List[Node] = []
    i = 0
    while i < len(children):
      node = children[i]
      if node.type != "paragraph":
        out.append(node)
        i += 1
        continue

      if self._is_located(node) and statement_keyword(self.source, node.position.start.offset):
        statements, consumed = self._statements_from_source(children, i)
        out.extend(statements)
        i += consumed
        continue

      if not self._is_located(node):
        literal = literal_text(node)
        if statement_keyword(literal):
          found, run_end = split_statements(literal)
          if literal[run_end:].strip():
            raise _trailing_content(found[-1].kind, node.position)
          out.extend(Node(s.kind, value=literal[s.start : s.end]) for s in found)
          i += 1
          continue

      out.append(node)
      i += 1
    return out

  def _statements_from_source(self, children: List[Node], i: int) -> Tuple[List[Node], int]:
    start = children[i].position.start.offset
    found, run_end = split_statements(self.source, start, self.index)

    j = i
    while j < len(children) and self._is_located(children[j]) and children[j].position.start.offset < run_end:
      j += 1

    last = children[j - 1]
    if last.position.end.offset > run_end:
      raise _trailing_content(found[-1].kind, self.index.span(run_end + 1, last.position.end.offset))

    nodes = [Node(s.kind, value=self.source[s.start : s.end], position=self.index.span(s.start, s.end)) for s in found]
    return nodes, j - i

  def _is_located(self, node: Node) -> bool:
    return self.source is not None and node.position is not None


def _trailing_content(kind: str, position: Optional[Position]) -> StructuralParseError:
  return StructuralParseError(f"Unexpected content after {kind} statement (separate it with a blank line)", position)
