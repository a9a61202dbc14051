"""
Base Markdown Parser.

Converts raw document text into the generic (MDAST-equivalent) tree using
markdown-it-py in CommonMark mode, with tables and strikethrough enabled.

Two rules are added to the stock grammar so that raw markup survives intact
for the Extension Transpiler:

1.  **markup_block**: any line opening with `<Name`, `</`, `<>` or `<!--`
    starts a raw markup block that runs to the next blank line. This is
    broader than CommonMark's HTML block rule, which rejects lines like
    `<Heading><Sub></Heading>`.
2.  **markup_inline**: a balanced inline element (`<b>bold</b>`) is captured
    as one raw node instead of one node per tag.

Everything the rules do not capture is delegated to markdown-it unchanged.
"""

import re
from typing import List, Optional, Sequence

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.rules_inline import StateInline
from markdown_it.tree import SyntaxTreeNode

from mdx_pipeline.core.errors import StructuralParseError
from mdx_pipeline.core.jsx.parser import MARKUP_START_RE, scan_element
from mdx_pipeline.core.nodes import LineIndex, Node, Position, literal_text

_ALIGN_RE = re.compile(r"text-align:\s*(left|right|center)")


def markup_block(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
  """Block rule capturing raw markup up to the next blank line."""
  if state.sCount[startLine] - state.blkIndent >= 4:
    return False

  pos = state.bMarks[startLine] + state.tShift[startLine]
  maximum = state.eMarks[startLine]
  if not MARKUP_START_RE.match(state.src[pos:maximum]):
    return False

  if silent:
    return True

  next_line = startLine + 1
  while next_line < endLine and not state.isEmpty(next_line):
    next_line += 1

  state.line = next_line
  token = state.push("html_block", "", 0)
  token.map = [startLine, next_line]
  token.content = state.getLines(startLine, next_line, state.blkIndent, True)
  return True


def markup_inline(state: StateInline, silent: bool) -> bool:
  """Inline rule capturing a whole balanced element as one raw token."""
  pos = state.pos
  if state.src[pos] != "<":
    return False

  end = scan_element(state.src, pos, state.posMax)
  if end is None:
    return False

  if not silent:
    token = state.push("html_inline", "", 0)
    token.content = state.src[pos:end]
  state.pos = end
  return True


def create_markdown_it() -> MarkdownIt:
  """Builds the configured markdown-it instance."""
  md = MarkdownIt("commonmark")
  md.enable("table")
  md.enable("strikethrough")
  md.block.ruler.before("html_block", "markup_block", markup_block, {"alt": ["paragraph", "reference", "blockquote"]})
  md.inline.ruler.before("html_inline", "markup_inline", markup_inline)
  return md


class MarkdownParser:
  """
  Facade turning Markdown text into a generic tree.
  """

  def __init__(self, md: Optional[MarkdownIt] = None) -> None:
    self.md = md or create_markdown_it()
    self._index: Optional[LineIndex] = None

  def parse(self, text: str) -> Node:
    """
    Parses a document.

    Args:
        text (str): Raw Markdown source.

    Returns:
        Node: A `root` node whose descendants use the generic vocabulary.

    Raises:
        StructuralParseError: If markdown-it yields a token kind with no generic counterpart.
    """
    self._index = LineIndex(text)
    syntax_tree = SyntaxTreeNode(self.md.parse(text))
    children = self._blocks(syntax_tree.children)
    return Node("root", children=children, position=self._index.span(0, len(text)))

  # --- Block level ---

  def _blocks(self, nodes: Sequence[SyntaxTreeNode]) -> List[Node]:
    return [self._block(n) for n in nodes]

  def _block(self, node: SyntaxTreeNode) -> Node:
    pos = self._position(node)
    kind = node.type

    if kind == "paragraph":
      return Node("paragraph", children=self._inline_content(node), position=pos)

    if kind == "heading":
      return Node("heading", children=self._inline_content(node), position=pos, props={"depth": int(node.tag[1:])})

    if kind == "blockquote":
      return Node("blockquote", children=self._blocks(node.children), position=pos)

    if kind in ("bullet_list", "ordered_list"):
      return self._list(node, pos)

    if kind == "fence":
      info = (node.info or "").strip()
      lang, _, meta = info.partition(" ")
      return Node(
        "code",
        value=_strip_final_newline(node.content),
        position=pos,
        props={"lang": lang or None, "meta": meta.strip() or None},
      )

    if kind == "code_block":
      return Node("code", value=_strip_final_newline(node.content), position=pos, props={"lang": None, "meta": None})

    if kind == "hr":
      return Node("thematicBreak", position=pos)

    if kind == "html_block":
      return Node("html", value=node.content.rstrip("\n"), position=pos)

    if kind == "table":
      return self._table(node, pos)

    raise StructuralParseError(f"Unsupported block token '{kind}'", pos)

  def _list(self, node: SyntaxTreeNode, pos: Optional[Position]) -> Node:
    ordered = node.type == "ordered_list"
    # markdown-it hides the paragraphs of tight lists
    tight = any(
      child.type == "paragraph" and child.hidden for item in node.children for child in item.children
    )
    items = [
      Node("listItem", children=self._blocks(item.children), position=self._position(item), props={"spread": not tight})
      for item in node.children
    ]
    start = int(node.attrs.get("start", 1)) if ordered else None
    return Node("list", children=items, position=pos, props={"ordered": ordered, "start": start, "spread": not tight})

  def _table(self, node: SyntaxTreeNode, pos: Optional[Position]) -> Node:
    rows: List[Node] = []
    align: List[Optional[str]] = []
    for section in node.children:
      for tr in section.children:
        cells = []
        for cell in tr.children:
          if not rows:
            m = _ALIGN_RE.search(str(cell.attrs.get("style", "")))
            align.append(m.group(1) if m else None)
          cells.append(Node("tableCell", children=self._inline_content(cell)))
        rows.append(Node("tableRow", children=cells, position=self._position(tr)))
    return Node("table", children=rows, position=pos, props={"align": align})

  # --- Inline level ---

  def _inline_content(self, node: SyntaxTreeNode) -> List[Node]:
    result: List[Node] = []
    for child in node.children:
      if child.type == "inline":
        result.extend(self._inlines(child.children))
    return result

  def _inlines(self, nodes: Sequence[SyntaxTreeNode]) -> List[Node]:
    out: List[Node] = []
    for node in nodes:
      kind = node.type

      if kind in ("text", "softbreak"):
        content = node.content if kind == "text" else "\n"
        if out and out[-1].type == "text":
          out[-1].value = (out[-1].value or "") + content
        else:
          out.append(Node("text", value=content))
      elif kind == "hardbreak":
        out.append(Node("break"))
      elif kind == "code_inline":
        out.append(Node("inlineCode", value=node.content))
      elif kind == "em":
        out.append(Node("emphasis", children=self._inlines(node.children)))
      elif kind == "strong":
        out.append(Node("strong", children=self._inlines(node.children)))
      elif kind == "s":
        out.append(Node("delete", children=self._inlines(node.children)))
      elif kind == "link":
        out.append(
          Node(
            "link",
            children=self._inlines(node.children),
            props={"url": node.attrs.get("href", ""), "title": node.attrs.get("title")},
          )
        )
      elif kind == "image":
        alt = "".join(literal_text(n) for n in self._inlines(node.children))
        out.append(
          Node("image", props={"url": node.attrs.get("src", ""), "alt": alt, "title": node.attrs.get("title")})
        )
      elif kind == "html_inline":
        out.append(Node("html", value=node.content))
      else:
        raise StructuralParseError(f"Unsupported inline token '{kind}'")
    return out

  def _position(self, node: SyntaxTreeNode) -> Optional[Position]:
    if not node.map or self._index is None:
      return None
    start_line, end_line = node.map
    start = self._index.line_starts[min(start_line, len(self._index.line_starts) - 1)]
    end = self._index.line_end(max(start_line, end_line - 1))
    return self._index.span(start, end)


def _strip_final_newline(value: str) -> str:
  return value[:-1] if value.endswith("\n") else value


def parse_markdown(text: str) -> Node:
  """Parses `text` into a generic tree with a fresh parser."""
  return MarkdownParser().parse(text)
