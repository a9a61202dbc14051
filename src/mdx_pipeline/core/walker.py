"""
Tree Walking Primitives.

Provides a pre-order, depth-first visitor in the style of LibCST visitors:
subclasses implement `visit_<kind>` methods (e.g. `visit_heading`,
`visit_inlineCode`). Kinds without a dedicated method fall through to
`generic_visit`, which leaves the node untouched, so visitors only need to
handle the kinds they care about.

A visit method returns one of:
    - `None` / `Action.CONTINUE`: keep the node and descend into its children.
    - `Action.SKIP`: keep the node, do not descend.
    - `Action.REMOVE`: delete the node from its parent.
    - a `Node`: replace the node; the replacement's children are visited next.
"""

from enum import Enum
from typing import Iterable, Iterator, List, Union

from mdx_pipeline.core.errors import StructuralParseError
from mdx_pipeline.core.nodes import Node


class Action(str, Enum):
  """Control signals a visitor may return."""

  CONTINUE = "continue"
  SKIP = "skip"
  REMOVE = "remove"


VisitResult = Union[None, Action, Node]


class NodeVisitor:
  """
  Base visitor with pass-through defaults.

  `ancestors` is the list of nodes from the root down to the parent of the
  node being visited.
  """

  def visit(self, node: Node, ancestors: List[Node]) -> VisitResult:
    method = getattr(self, f"visit_{node.type}", None)
    if method is None:
      return self.generic_visit(node, ancestors)
    return method(node, ancestors)

  def generic_visit(self, node: Node, ancestors: List[Node]) -> VisitResult:
    return None


def walk(tree: Node, visitor: NodeVisitor) -> Node:
  """
  Walks `tree` pre-order, applying the visitor's edits as they happen.

  Args:
      tree (Node): The root of the tree.
      visitor (NodeVisitor): The visitor to apply.

  Returns:
      Node: The root, which differs from `tree` only if the visitor replaced it.

  Raises:
      StructuralParseError: If the visitor tries to remove the root.
  """
  result = visitor.visit(tree, [])
  if result is Action.REMOVE:
    raise StructuralParseError("Cannot remove the root node", tree.position)
  if isinstance(result, Node):
    tree = result
  if result is not Action.SKIP:
    _walk_children(tree, visitor, [tree])
  return tree


def _walk_children(parent: Node, visitor: NodeVisitor, ancestors: List[Node]) -> None:
  if parent.children is None:
    return

  i = 0
  while i < len(parent.children):
    child = parent.children[i]
    result = visitor.visit(child, ancestors)

    if result is Action.REMOVE:
      del parent.children[i]
      continue

    if isinstance(result, Node):
      parent.children[i] = result
      child = result

    if result is not Action.SKIP:
      _walk_children(child, visitor, ancestors + [child])
    i += 1


def iter_nodes(tree: Node) -> Iterator[Node]:
  """Yields every node of the tree in pre-order."""
  stack = [tree]
  while stack:
    node = stack.pop()
    yield node
    children = getattr(node, "children", None)
    if children:
      stack.extend(reversed(children))


def find_all(tree: Node, kinds: Union[str, Iterable[str]]) -> List[Node]:
  """Returns all nodes whose kind is in `kinds`, in document order."""
  wanted = {kinds} if isinstance(kinds, str) else set(kinds)
  return [n for n in iter_nodes(tree) if n.type in wanted]


def validate_tree(tree: Node, vocabulary: Iterable[str], stage: str) -> None:
  """
  Verifies every reachable node belongs to a stage vocabulary.

  Args:
      tree (Node): Tree to check.
      vocabulary (Iterable[str]): Permitted kinds.
      stage (str): Stage label used in the error message.

  Raises:
      StructuralParseError: On the first node whose kind is not permitted,
          or if the tree is not rooted at a `root` node.
  """
  allowed = frozenset(vocabulary)
  if not isinstance(tree, Node) or tree.type != "root":
    found = tree.type if isinstance(tree, Node) else type(tree).__name__
    raise StructuralParseError(f"{stage}: expected a 'root' node, got '{found}'")

  for node in iter_nodes(tree):
    if not isinstance(node, Node):
      raise StructuralParseError(f"{stage}: non-node object {node!r} in tree")
    if node.type not in allowed:
      raise StructuralParseError(f"{stage}: unknown node kind '{node.type}'", node.position)
