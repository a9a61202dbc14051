"""
Markup Transpiler (Stage 2).

Maps the extended tree onto the markup vocabulary: every generic kind becomes
an `element` with an HTML tag name (or stays a `text` / `inlineCode` leaf),
while `jsx`, `import` and `export` nodes pass through untouched.

| Extended kind   | Markup                                         |
|-----------------|------------------------------------------------|
| heading         | `h1` .. `h6`                                   |
| paragraph       | `p`                                            |
| blockquote      | `blockquote`                                   |
| list / listItem | `ul` or `ol` (`start`) / `li`                  |
| code            | `pre` > `code` (`className`, `metastring`)     |
| thematicBreak   | `hr`                                           |
| emphasis        | `em`                                           |
| strong          | `strong`                                       |
| delete          | `del`                                          |
| break           | `br`                                           |
| link            | `a` (`href`, `title`)                          |
| image           | `img` (`src`, `alt`, `title`)                  |
| table           | `table` > `thead` / `tbody` > `tr` > `th`/`td` |

Paragraphs directly inside the items of a tight list are unwrapped.
"""

import copy
from typing import Any, Dict, List, Optional

from mdx_pipeline.core.errors import StructuralParseError
from mdx_pipeline.core.nodes import EXTENDED_KINDS, MARKUP_KINDS, Node
from mdx_pipeline.core.walker import validate_tree

PASSTHROUGH_KINDS = frozenset({"jsx", "import", "export"})

_SIMPLE_TAGS: Dict[str, str] = {
  "paragraph": "p",
  "blockquote": "blockquote",
  "thematicBreak": "hr",
  "emphasis": "em",
  "strong": "strong",
  "delete": "del",
  "break": "br",
}


class MarkupTranspiler:
  """
  Extended tree -> markup tree.
  """

  def transpile(self, tree: Node) -> Node:
    """
    Produces the markup tree. The input tree is left unmodified.

    Args:
        tree (Node): A tree in the extended vocabulary.

    Returns:
        Node: A new tree in the markup vocabulary.

    Raises:
        StructuralParseError: If the tree contains a kind with no mapping.
    """
    validate_tree(tree, EXTENDED_KINDS, "stage2")
    result = Node("root", children=self._map_children(tree), position=tree.position, props=dict(tree.props))
    validate_tree(result, MARKUP_KINDS, "stage2")
    return result

  def _map_children(self, node: Node) -> List[Node]:
    return [self._map(child) for child in node.children or []]

  def _map(self, node: Node) -> Node:
    kind = node.type

    if kind in PASSTHROUGH_KINDS:
      return copy.deepcopy(node)

    if kind in ("text", "inlineCode"):
      return Node(kind, value=node.value or "", position=node.position)

    if kind in _SIMPLE_TAGS:
      return self._element(_SIMPLE_TAGS[kind], node, self._map_children(node))

    handler = getattr(self, f"_map_{kind}", None)
    if handler is None:
      raise StructuralParseError(f"No markup mapping for node kind '{kind}'", node.position)
    return handler(node)

  def _map_heading(self, node: Node) -> Node:
    depth = int(node.props.get("depth", 1))
    if not 1 <= depth <= 6:
      raise StructuralParseError(f"Invalid heading depth {depth}", node.position)
    return self._element(f"h{depth}", node, self._map_children(node))

  def _map_list(self, node: Node) -> Node:
    ordered = bool(node.props.get("ordered"))
    props: Dict[str, Any] = {}
    start = node.props.get("start")
    if ordered and start is not None and start != 1:
      props["start"] = start

    tight = not node.props.get("spread", False)
    items = [self._list_item(item, tight) for item in node.children or []]
    return self._element("ol" if ordered else "ul", node, items, props)

  def _list_item(self, item: Node, tight: bool) -> Node:
    if item.type != "listItem":
      return self._map(item)

    children: List[Node] = []
    for child in item.children or []:
      if tight and child.type == "paragraph":
        children.extend(self._map_children(child))
      else:
        children.append(self._map(child))
    return self._element("li", item, children)

  def _map_listItem(self, node: Node) -> Node:
    return self._list_item(node, tight=not node.props.get("spread", False))

  def _map_code(self, node: Node) -> Node:
    code_props: Dict[str, Any] = {}
    lang = node.props.get("lang")
    if lang:
      code_props["className"] = [f"language-{lang}"]
    meta = node.props.get("meta")
    if meta:
      code_props["metastring"] = meta

    code = Node(
      "element",
      children=[Node("text", value=node.value or "")],
      props={"tagName": "code", "properties": code_props},
    )
    return self._element("pre", node, [code])

  def _map_link(self, node: Node) -> Node:
    props = {"href": node.props.get("url", "")}
    if node.props.get("title") is not None:
      props["title"] = node.props["title"]
    return self._element("a", node, self._map_children(node), props)

  def _map_image(self, node: Node) -> Node:
    props = {"src": node.props.get("url", ""), "alt": node.props.get("alt", "")}
    if node.props.get("title") is not None:
      props["title"] = node.props["title"]
    return self._element("img", node, [], props)

  def _map_table(self, node: Node) -> Node:
    align: List[Optional[str]] = list(node.props.get("align") or [])
    rows = list(node.children or [])
    sections: List[Node] = []

    if rows:
      sections.append(Node("element", children=[self._row(rows[0], "th", align)], props={"tagName": "thead", "properties": {}}))
    if len(rows) > 1:
      body = [self._row(row, "td", align) for row in rows[1:]]
      sections.append(Node("element", children=body, props={"tagName": "tbody", "properties": {}}))
    return self._element("table", node, sections)

  def _row(self, row: Node, cell_tag: str, align: List[Optional[str]]) -> Node:
    if row.type != "tableRow":
      raise StructuralParseError(f"Expected a tableRow inside a table, got '{row.type}'", row.position)

    cells = []
    for i, cell in enumerate(row.children or []):
      if cell.type != "tableCell":
        raise StructuralParseError(f"Expected a tableCell inside a tableRow, got '{cell.type}'", cell.position)
      props = {"align": align[i]} if i < len(align) and align[i] else {}
      cells.append(self._element(cell_tag, cell, self._map_children(cell), props))
    return self._element("tr", row, cells)

  def _map_tableRow(self, node: Node) -> Node:
    return self._row(node, "td", [])

  def _map_tableCell(self, node: Node) -> Node:
    return self._element("td", node, self._map_children(node))

  def _element(self, tag: str, source: Node, children: List[Node], properties: Optional[Dict[str, Any]] = None) -> Node:
    return Node(
      "element",
      children=children,
      position=source.position,
      props={"tagName": tag, "properties": dict(properties or {})},
    )
