"""
Tests for the Stage 2 Markup Transpiler.
"""

import pytest

from mdx_pipeline.core.base_parser import parse_markdown
from mdx_pipeline.core.errors import StructuralParseError
from mdx_pipeline.core.extension import ExtensionTranspiler
from mdx_pipeline.core.markup import MarkupTranspiler
from mdx_pipeline.core.nodes import MARKUP_KINDS, Node, root, text
from mdx_pipeline.core.walker import find_all, validate_tree


def to_markup(doc: str) -> Node:
  extended = ExtensionTranspiler(doc).transpile(parse_markdown(doc))
  return MarkupTranspiler().transpile(extended)


def tag(node: Node) -> str:
  return node.props["tagName"]


def test_headings_and_paragraphs():
  tree = to_markup("# One\n\n### Three\n\nbody")
  assert [tag(c) for c in tree.children] == ["h1", "h3", "p"]
  assert tree.children[0].children[0].type == "text"


def test_inline_formatting():
  tree = to_markup("*a* **b** ~~c~~ `d`  \ne")
  kinds = [c.props.get("tagName", c.type) for c in tree.children[0].children]
  assert kinds == ["em", "text", "strong", "text", "del", "text", "inlineCode", "br", "text"]


def test_link_and_image_properties():
  tree = to_markup('[x](/a "T") ![alt](/i.png)')
  link, _, image = tree.children[0].children
  assert link.props["properties"] == {"href": "/a", "title": "T"}
  assert tag(image) == "img"
  assert image.props["properties"] == {"src": "/i.png", "alt": "alt"}
  assert image.children == []


def test_code_block():
  tree = to_markup("```py meta here\nprint(1)\n```")
  [pre] = tree.children
  assert tag(pre) == "pre"
  [code] = pre.children
  assert tag(code) == "code"
  assert code.props["properties"] == {"className": ["language-py"], "metastring": "meta here"}
  assert code.children[0].value == "print(1)"


def test_tight_list_unwraps_paragraphs():
  tree = to_markup("- a\n- b")
  [ul] = tree.children
  assert tag(ul) == "ul"
  assert [c.type for c in ul.children[0].children] == ["text"]


def test_loose_ordered_list():
  tree = to_markup("2. a\n\n3. b")
  [ol] = tree.children
  assert tag(ol) == "ol"
  assert ol.props["properties"] == {"start": 2}
  assert tag(ol.children[0].children[0]) == "p"


def test_table_sections_and_alignment():
  tree = to_markup("| h | i |\n|:-:|---|\n| 1 | 2 |\n| 3 | 4 |")
  [table] = tree.children
  thead, tbody = table.children
  assert tag(thead) == "thead"
  assert [tag(c) for c in thead.children[0].children] == ["th", "th"]
  assert thead.children[0].children[0].props["properties"] == {"align": "center"}
  assert len(tbody.children) == 2
  assert tag(tbody.children[0].children[0]) == "td"


def test_blockquote_and_rule():
  tree = to_markup("> q\n\n***")
  assert [tag(c) for c in tree.children] == ["blockquote", "hr"]


def test_special_nodes_pass_through():
  doc = "import A from 'a'\n\n<A>\n  *not markdown*\n</A>\n\nexport const b = 1"
  tree = to_markup(doc)
  imp, jsx, exp = tree.children
  assert (imp.type, imp.value) == ("import", "import A from 'a'")
  assert jsx.type == "jsx"
  assert jsx.value == "<A>\n  *not markdown*\n</A>"
  assert jsx.children[0].type == "text"
  assert exp.type == "export"


def test_output_vocabulary():
  tree = to_markup("# T\n\n- [x](y)\n\n> `c`\n\n<B />")
  validate_tree(tree, MARKUP_KINDS, "stage2")
  assert not find_all(tree, ["paragraph", "heading", "link"])


def test_input_is_not_modified():
  extended = root([Node("paragraph", children=[text("p")])])
  MarkupTranspiler().transpile(extended)
  assert extended.children[0].type == "paragraph"


def test_unmapped_kind_fails():
  with pytest.raises(StructuralParseError, match="unknown node kind 'html'"):
    MarkupTranspiler().transpile(root([Node("html", value="<b>")]))


def test_nested_root_has_no_mapping():
  with pytest.raises(StructuralParseError, match="No markup mapping for node kind 'root'"):
    MarkupTranspiler().transpile(root([root([])]))
