"""
Tests for JSX module generation.
"""

import pytest

from mdx_pipeline.core.codegen import CodeGenerator, escape_template
from mdx_pipeline.core.errors import CodeGenerationError
from mdx_pipeline.core.nodes import Node, element, root, text


def generate(tree, **kwargs):
  return CodeGenerator(**kwargs).generate(tree)


def test_empty_document():
  assert generate(root([]), runtime_module=None) == (
    "export default ({components, ...props}) => <MDXTag name=\"wrapper\" components={components}>\n</MDXTag>\n"
  )


def test_runtime_import_comes_first():
  code = generate(root([Node("import", value="import A from 'a'")]))
  assert code.splitlines()[:2] == ["import { MDXTag } from '@mdx-js/tag'", "import A from 'a'"]


def test_statement_hoisting_keeps_relative_order():
  tree = root(
    [
      element("p", [text("first")]),
      Node("export", value="export const b = 2"),
      Node("import", value="import A from 'a'"),
      Node("export", value="export const c = 3"),
      Node("jsx", value="<A />"),
    ]
  )
  code = generate(tree, runtime_module=None)
  head, exports, component = code.split("\n\n")
  assert head == "import A from 'a'"
  assert exports == "export const b = 2\nexport const c = 3"
  body = component.splitlines()[1:-1]
  assert body == ['<MDXTag name="p" components={components}>{`first`}</MDXTag>', "<A />"]


def test_elements_with_props_and_parent_names():
  tree = root([element("p", [element("a", [text("x")], href="/y"), Node("inlineCode", value="k")])])
  code = generate(tree, runtime_module=None)
  assert (
    '<MDXTag name="p" components={components}>'
    '<MDXTag name="a" components={components} parentName="p" props={{"href": "/y"}}>{`x`}</MDXTag>'
    '<MDXTag name="inlineCode" components={components} parentName="p">{`k`}</MDXTag>'
    "</MDXTag>"
  ) in code


def test_void_elements_self_close():
  code = generate(root([element("hr"), element("p", [element("img", src="a.png", alt="")])]), runtime_module=None)
  assert '<MDXTag name="hr" components={components} />' in code
  assert '<MDXTag name="img" components={components} parentName="p" props={{"src": "a.png", "alt": ""}} />' in code


def test_block_children_on_separate_lines():
  tree = root([element("ul", [element("li", [text("a")]), element("li", [text("b")])])])
  code = generate(tree, runtime_module=None)
  assert '<MDXTag name="ul" components={components}>\n<MDXTag name="li"' in code


def test_jsx_value_is_authoritative():
  jsx = Node("jsx", value="<Box>original</Box>", children=[text("edited")])
  code = generate(root([jsx]), runtime_module=None)
  assert "<Box>original</Box>" in code
  assert "edited" not in code


def test_default_export_becomes_layout():
  tree = root([Node("export", value="export default Layout;"), element("p", [text("x")])])
  code = generate(tree, runtime_module=None)
  assert "const MDXLayout = Layout\n" in code
  assert '<MDXTag name="wrapper" Layout={MDXLayout} layoutProps={props} components={components}>' in code
  assert "export default Layout" not in code


def test_two_default_exports_fail():
  tree = root([Node("export", value="export default A"), Node("export", value="export default B")])
  with pytest.raises(CodeGenerationError, match="only one default export"):
    generate(tree)


def test_nested_statement_fails():
  with pytest.raises(CodeGenerationError, match="top level"):
    generate(root([element("p", [Node("import", value="import x from 'x'")])]))


def test_unknown_kind_fails():
  with pytest.raises(CodeGenerationError, match="node kind 'paragraph'"):
    generate(root([Node("paragraph", children=[])]))


@pytest.mark.parametrize(
  "raw, escaped",
  [
    ("plain", "plain"),
    ("a`b", "a\\`b"),
    ("${x}", "\\${x}"),
    ("back\\slash", "back\\\\slash"),
  ],
)
def test_escape_template(raw, escaped):
  assert escape_template(raw) == escaped
