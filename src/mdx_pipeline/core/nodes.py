"""
Syntax Tree Nodes.

Defines the universal tree unit shared by every pipeline stage, its source
span metadata, and the fixed kind vocabularies each stage accepts.

A node carries:
    - `type`: the kind tag.
    - `value`: optional raw string payload (leaves, `jsx`, `import`, `export`).
    - `children`: ordered child list, `None` for leaves.
    - `position`: optional source span, used for diagnostics only.
    - `props`: kind-specific properties (heading depth, link url, element tagName...).

Serialized form (the interchange format for transforms and tooling)::

    {"type": "heading", "depth": 1, "children": [{"type": "text", "value": "Hi"}]}
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

# Keys with structural meaning in the serialized form. Everything else is a prop.
_RESERVED_KEYS = frozenset({"type", "value", "children", "position"})

GENERIC_KINDS: FrozenSet[str] = frozenset(
  {
    "root",
    "paragraph",
    "heading",
    "thematicBreak",
    "blockquote",
    "list",
    "listItem",
    "code",
    "html",
    "table",
    "tableRow",
    "tableCell",
    "text",
    "emphasis",
    "strong",
    "delete",
    "inlineCode",
    "break",
    "link",
    "image",
  }
)

SPECIAL_KINDS: FrozenSet[str] = frozenset({"jsx", "import", "export"})

# Stage 1 consumes every `html` node, so it never appears in the extended tree.
EXTENDED_KINDS: FrozenSet[str] = (GENERIC_KINDS - {"html"}) | SPECIAL_KINDS

MARKUP_KINDS: FrozenSet[str] = frozenset({"root", "element", "text", "inlineCode"}) | SPECIAL_KINDS


@dataclass
class Point:
  """
  A single location in the source text.

  Attributes:
      line (int): 1-based line number.
      column (int): 1-based column number.
      offset (int): 0-based character offset into the source.
  """

  line: int
  column: int
  offset: int

  def to_dict(self) -> Dict[str, int]:
    return {"line": self.line, "column": self.column, "offset": self.offset}

  @classmethod
  def from_dict(cls, data: Dict[str, Any]) -> "Point":
    return cls(line=int(data["line"]), column=int(data["column"]), offset=int(data.get("offset", 0)))


@dataclass
class Position:
  """Source span of a node. Never consulted for semantics."""

  start: Point
  end: Point

  def to_dict(self) -> Dict[str, Any]:
    return {"start": self.start.to_dict(), "end": self.end.to_dict()}

  @classmethod
  def from_dict(cls, data: Dict[str, Any]) -> "Position":
    return cls(start=Point.from_dict(data["start"]), end=Point.from_dict(data["end"]))


class LineIndex:
  """
  Maps character offsets of a source string to line/column points.
  """

  def __init__(self, source: str):
    self.source = source
    self.line_starts = [0]
    for i, ch in enumerate(source):
      if ch == "\n":
        self.line_starts.append(i + 1)

  def point(self, offset: int) -> Point:
    offset = max(0, min(offset, len(self.source)))
    lo, hi = 0, len(self.line_starts) - 1
    while lo < hi:
      mid = (lo + hi + 1) // 2
      if self.line_starts[mid] <= offset:
        lo = mid
      else:
        hi = mid - 1
    return Point(line=lo + 1, column=offset - self.line_starts[lo] + 1, offset=offset)

  def span(self, start: int, end: int) -> Position:
    return Position(start=self.point(start), end=self.point(end))

  def line_end(self, line_idx: int) -> int:
    """Offset of the end of a 0-based line, excluding its line break."""
    if line_idx + 1 < len(self.line_starts):
      return self.line_starts[line_idx + 1] - 1
    return len(self.source)


@dataclass
class Node:
  """
  The universal tree unit.

  Attributes:
      type (str): Kind tag from the active stage vocabulary.
      value (Optional[str]): Raw string payload.
      children (Optional[List[Node]]): Ordered children; None for leaves.
      position (Optional[Position]): Source span metadata.
      props (Dict[str, Any]): Kind-specific properties.
  """

  type: str
  value: Optional[str] = None
  children: Optional[List["Node"]] = None
  position: Optional[Position] = None
  props: Dict[str, Any] = field(default_factory=dict)

  @property
  def is_leaf(self) -> bool:
    return self.children is None

  def to_dict(self) -> Dict[str, Any]:
    """
    Serializes the node (recursively) into plain JSON-compatible data.

    Returns:
        Dict[str, Any]: Mapping with `type`, `value` and/or `children`,
        flattened props and, when known, `position`.
    """
    out: Dict[str, Any] = {"type": self.type}
    for key, val in self.props.items():
      out[key] = val
    if self.value is not None:
      out["value"] = self.value
    if self.children is not None:
      out["children"] = [child.to_dict() for child in self.children]
    if self.position is not None:
      out["position"] = self.position.to_dict()
    return out

  @classmethod
  def from_dict(cls, data: Dict[str, Any]) -> "Node":
    """
    Rebuilds a node tree from its serialized form.

    Args:
        data (Dict[str, Any]): Output of `to_dict` or an equivalent mapping.

    Returns:
        Node: The reconstructed node.

    Raises:
        ValueError: If the mapping has no `type` key.
    """
    if "type" not in data:
      raise ValueError(f"Serialized node is missing 'type': {data!r}")

    children = data.get("children")
    position = data.get("position")
    return cls(
      type=data["type"],
      value=data.get("value"),
      children=[cls.from_dict(c) for c in children] if children is not None else None,
      position=Position.from_dict(position) if position else None,
      props={k: v for k, v in data.items() if k not in _RESERVED_KEYS},
    )


def text(value: str, position: Optional[Position] = None) -> Node:
  """Shorthand for a `text` leaf."""
  return Node("text", value=value, position=position)


def element(tag_name: str, children: Optional[List[Node]] = None, **properties: Any) -> Node:
  """Shorthand for a markup-tree `element` node."""
  return Node(
    "element",
    children=list(children or []),
    props={"tagName": tag_name, "properties": dict(properties)},
  )


def root(children: Optional[List[Node]] = None) -> Node:
  return Node("root", children=list(children or []))


def literal_text(node: Node) -> str:
  """
  Concatenates the string content of a subtree.

  Text-like leaves contribute their value; containers contribute their
  children's text; `break` contributes a newline.
  """
  if node.type == "break":
    return "\n"
  if node.children is None:
    return node.value or ""
  return "".join(literal_text(child) for child in node.children)
