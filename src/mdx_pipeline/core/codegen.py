"""
JSX Code Generator.

Renders a markup tree into the source of a JavaScript module:

1.  `import` statements, in document order.
2.  Named `export` statements, in document order.
3.  An optional layout binding taken from a single `export default X`.
4.  A default-exported component rendering the remaining root children
    inside `<MDXTag name="wrapper">`.

Generic elements go through the `MDXTag` runtime component so the host can
substitute its own components per tag name. `jsx`, `import` and `export`
values are emitted verbatim; they are never re-serialized from children.

Example output::

    import { MDXTag } from '@mdx-js/tag'
    import Video from './video'

    export default ({components, ...props}) => <MDXTag name="wrapper" components={components}>
    <MDXTag name="h1" components={components}>{`Hello`}</MDXTag>
    <Video />
    </MDXTag>
"""

import json
import re
from typing import List, Optional

from mdx_pipeline.core.errors import CodeGenerationError
from mdx_pipeline.core.nodes import Node

DEFAULT_RUNTIME = "@mdx-js/tag"

_EXPORT_DEFAULT_RE = re.compile(r"export\s+default\s+(?P<expr>.*?)\s*;?\s*$", re.DOTALL)

# Elements whose children are laid out one per line
BLOCK_TAGS = frozenset(
  {"p", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "ul", "ol", "li", "pre", "hr", "table", "thead", "tbody", "tr"}
)

VOID_TAGS = frozenset({"hr", "br", "img"})


def escape_template(value: str) -> str:
  """Escapes text for use inside a JavaScript template literal."""
  return value.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


class CodeGenerator:
  """
  Markup tree -> JSX module string.
  """

  def __init__(self, runtime_module: Optional[str] = DEFAULT_RUNTIME):
    """
    Args:
        runtime_module: Module `MDXTag` is imported from. None omits the
            import (the host provides `MDXTag` in scope).
    """
    self.runtime_module = runtime_module

  def generate(self, tree: Node) -> str:
    """
    Renders the module.

    Args:
        tree (Node): Markup tree rooted at `root`.

    Returns:
        str: JavaScript (JSX) module source, newline terminated.

    Raises:
        CodeGenerationError: On unknown kinds, misplaced statements, or
            more than one default export.
    """
    if tree.type != "root":
      raise CodeGenerationError(f"Expected a 'root' node, got '{tree.type}'")

    imports: List[str] = []
    exports: List[str] = []
    layout: Optional[str] = None
    body: List[Node] = []

    for child in tree.children or []:
      if child.type == "import":
        imports.append(child.value or "")
      elif child.type == "export":
        m = _EXPORT_DEFAULT_RE.match((child.value or "").strip())
        if m is None:
          exports.append(child.value or "")
        elif layout is not None:
          raise CodeGenerationError("A document may contain only one default export")
        else:
          layout = m.group("expr")
      else:
        body.append(child)

    sections: List[str] = []
    head = ([f"import {{ MDXTag }} from '{self.runtime_module}'"] if self.runtime_module else []) + imports
    if head:
      sections.append("\n".join(head))
    if exports:
      sections.append("\n".join(exports))
    if layout is not None:
      sections.append(f"const MDXLayout = {layout}")

    wrapper_attrs = ' name="wrapper"'
    if layout is not None:
      wrapper_attrs += " Layout={MDXLayout} layoutProps={props}"
    wrapper_attrs += " components={components}"

    content = "\n".join(self._render(child, None) for child in body)
    component = f"export default ({{components, ...props}}) => <MDXTag{wrapper_attrs}>\n"
    if content:
      component += content + "\n"
    component += "</MDXTag>"
    sections.append(component)

    return "\n\n".join(sections) + "\n"

  def _render(self, node: Node, parent: Optional[str]) -> str:
    kind = node.type

    if kind == "text":
      return f"{{`{escape_template(node.value or '')}`}}"

    if kind == "inlineCode":
      return self._tag("inlineCode", parent, {}, f"{{`{escape_template(node.value or '')}`}}")

    if kind == "jsx":
      return node.value or ""

    if kind == "element":
      return self._render_element(node, parent)

    if kind in ("import", "export"):
      raise CodeGenerationError(f"'{kind}' statements are only allowed at the top level", node.position)

    raise CodeGenerationError(f"Cannot generate code for node kind '{kind}'", node.position)

  def _render_element(self, node: Node, parent: Optional[str]) -> str:
    tag = node.props.get("tagName")
    if not tag:
      raise CodeGenerationError("Element node without a tagName", node.position)

    children = node.children or []
    if not children and tag in VOID_TAGS:
      return self._tag(tag, parent, node.props.get("properties") or {}, None)

    rendered = [self._render(child, tag) for child in children]
    block = any(c.type == "element" and c.props.get("tagName") in BLOCK_TAGS for c in children)
    if block:
      inner = "\n" + "\n".join(rendered) + "\n"
    else:
      inner = "".join(rendered)
    return self._tag(tag, parent, node.props.get("properties") or {}, inner)

  def _tag(self, name: str, parent: Optional[str], properties: dict, inner: Optional[str]) -> str:
    attrs = f' name="{name}" components={{components}}'
    if parent:
      attrs += f' parentName="{parent}"'
    if properties:
      attrs += f" props={{{json.dumps(properties, ensure_ascii=False)}}}"
    if inner is None:
      return f"<MDXTag{attrs} />"
    return f"<MDXTag{attrs}>{inner}</MDXTag>"
