"""
Plugin for Bare Image URLs.

Turns a paragraph consisting of nothing but an image URL into an image:

    Input:  paragraph > text("https://example.com/cat.png")
    Output: paragraph > image(url="https://example.com/cat.png", alt="")

Settings (`plugin_settings`):
    image_extensions: File extensions recognized as images.
"""

import re
from typing import List

from pydantic import BaseModel, Field

from mdx_pipeline.core.hooks import TransformContext, register_transform
from mdx_pipeline.core.nodes import Node
from mdx_pipeline.core.walker import Action, NodeVisitor, VisitResult, walk

_URL_RE = re.compile(r"https?://\S+")


class ImageAutolinkSettings(BaseModel):
  image_extensions: List[str] = Field(default_factory=lambda: ["png", "jpg", "jpeg", "gif", "svg", "webp"])


class _ImageParagraphs(NodeVisitor):
  def __init__(self, extensions: List[str]):
    self.extensions = tuple(f".{ext.lower().lstrip('.')}" for ext in extensions)

  def visit_paragraph(self, node: Node, ancestors: List[Node]) -> VisitResult:
    children = node.children or []
    if len(children) != 1 or children[0].type != "text":
      return Action.SKIP

    url = (children[0].value or "").strip()
    if not _URL_RE.fullmatch(url) or not url.split("?", 1)[0].lower().endswith(self.extensions):
      return Action.SKIP

    node.children = [Node("image", props={"url": url, "alt": "", "title": None})]
    return Action.SKIP


@register_transform("image-autolink", stage="stage1", builtin=True)
def image_autolink(tree: Node, ctx: TransformContext) -> None:
  """
  Transform: Rewrites bare image URL paragraphs in place.

  Args:
      tree (Node): The extended tree.
      ctx (TransformContext): Context with plugin settings.
  """
  settings = ctx.validate_settings(ImageAutolinkSettings)
  walk(tree, _ImageParagraphs(settings.image_extensions))
