"""
Tests for the markdown-it based generic tree builder.
"""

import pytest

from mdx_pipeline.core.base_parser import parse_markdown
from mdx_pipeline.core.nodes import GENERIC_KINDS
from mdx_pipeline.core.walker import iter_nodes, validate_tree


def test_heading_and_paragraph():
  tree = parse_markdown("# Hello\n\nSome *em* and **strong**.")
  heading, para = tree.children

  assert heading.type == "heading"
  assert heading.props["depth"] == 1
  assert heading.children[0].value == "Hello"
  assert [c.type for c in para.children] == ["text", "emphasis", "text", "strong", "text"]


def test_positions_follow_line_maps():
  tree = parse_markdown("# A\n\npara\ngraph")
  para = tree.children[1]
  assert para.position.start.line == 3
  assert para.position.end.line == 4
  assert para.position.start.offset == 5


def test_soft_break_merges_into_text():
  tree = parse_markdown("one\ntwo")
  [para] = tree.children
  assert len(para.children) == 1
  assert para.children[0].value == "one\ntwo"


def test_hard_break():
  tree = parse_markdown("one  \ntwo")
  assert [c.type for c in tree.children[0].children] == ["text", "break", "text"]


def test_code_blocks():
  tree = parse_markdown("```js title=x\nlet a = 1\n```\n\n    indented")
  fence, indented = tree.children
  assert fence.type == "code"
  assert fence.value == "let a = 1"
  assert fence.props == {"lang": "js", "meta": "title=x"}
  assert indented.value == "indented"
  assert indented.props["lang"] is None


def test_lists():
  tree = parse_markdown("- a\n- b\n\n3. x\n\n4. y")
  bullet, ordered = tree.children

  assert bullet.props == {"ordered": False, "start": None, "spread": False}
  assert [item.type for item in bullet.children] == ["listItem", "listItem"]
  assert ordered.props["ordered"] is True
  assert ordered.props["start"] == 3
  assert ordered.props["spread"] is True


def test_links_images_inline_code_and_strike():
  tree = parse_markdown('[site](https://x.dev "T") ![cat](c.png) `code` ~~gone~~')
  kinds = [c.type for c in tree.children[0].children]
  assert kinds == ["link", "text", "image", "text", "inlineCode", "text", "delete"]

  link = tree.children[0].children[0]
  assert link.props == {"url": "https://x.dev", "title": "T"}
  image = tree.children[0].children[2]
  assert image.props["alt"] == "cat"
  assert image.props["url"] == "c.png"


def test_table():
  tree = parse_markdown("| a | b |\n|:--|--:|\n| 1 | 2 |")
  [table] = tree.children
  assert table.type == "table"
  assert table.props["align"] == ["left", "right"]
  assert len(table.children) == 2
  assert table.children[1].children[0].children[0].value == "1"


def test_thematic_break_and_blockquote():
  tree = parse_markdown("> quoted\n\n---")
  assert [c.type for c in tree.children] == ["blockquote", "thematicBreak"]


class TestRawMarkup:
  def test_markup_block_runs_to_blank_line(self):
    tree = parse_markdown("<Note>\n  Hi *there*\n</Note>\n\nafter")
    block, para = tree.children
    assert block.type == "html"
    assert block.value == "<Note>\n  Hi *there*\n</Note>"
    assert para.type == "paragraph"

  def test_mismatched_markup_still_captured_whole(self):
    tree = parse_markdown("<Heading><Sub></Heading>")
    assert tree.children[0].type == "html"
    assert tree.children[0].value == "<Heading><Sub></Heading>"

  def test_inline_element_captured_whole(self):
    tree = parse_markdown("say <b>bold <i>it</i></b> now")
    html = [c for c in tree.children[0].children if c.type == "html"]
    assert [h.value for h in html] == ["<b>bold <i>it</i></b>"]

  def test_autolinks_are_not_markup(self):
    tree = parse_markdown("<https://example.com>")
    assert tree.children[0].type == "paragraph"
    assert tree.children[0].children[0].type == "link"

  def test_less_than_in_prose(self):
    tree = parse_markdown("a < b")
    assert tree.children[0].children[0].value == "a < b"


@pytest.mark.parametrize(
  "doc",
  [
    "# T\n\n- a\n- b",
    "> q\n\n```\nx\n```",
    "| a |\n|---|\n| b |",
    "<Video />\n\ntext <b>x</b>",
  ],
)
def test_output_uses_generic_vocabulary(doc):
  tree = parse_markdown(doc)
  validate_tree(tree, GENERIC_KINDS, "parse")
  assert all(node.type != "jsx" for node in iter_nodes(tree))
