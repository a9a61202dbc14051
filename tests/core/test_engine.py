"""
End-to-end tests for the MdxEngine pipeline.
"""

import asyncio
import io

import pytest
from rich.console import Console

from mdx_pipeline.config import RuntimeConfig
from mdx_pipeline.core.engine import CompileResult, MdxEngine
from mdx_pipeline.core.errors import StructuralParseError, TransformError
from mdx_pipeline.core.hooks import register_transform
from mdx_pipeline.core.markup import MarkupTranspiler
from mdx_pipeline.core.nodes import Node
from mdx_pipeline.core.tracer import TraceEventType
from mdx_pipeline.core.walker import find_all
from mdx_pipeline.utils.console import reset_console, set_console

REFERENCE_DOC = "import Video from '../components/Video'\n\n# Hello, world!\n\n<Video />\n"


def engine(**kwargs) -> MdxEngine:
  return MdxEngine(RuntimeConfig(**kwargs))


def run(eng: MdxEngine, text: str) -> CompileResult:
  return asyncio.run(eng.run(text))


def test_reference_document_markup_tree():
  result = run(engine(), REFERENCE_DOC)
  imp, heading, jsx = result.markup_tree["children"]

  assert imp["type"] == "import"
  assert imp["value"] == "import Video from '../components/Video'"
  assert heading["type"] == "element"
  assert heading["tagName"] == "h1"
  assert heading["children"][0]["value"] == "Hello, world!"
  assert jsx["type"] == "jsx"
  assert jsx["value"] == "<Video />"
  assert jsx["children"] == []


def test_reference_document_code():
  code = engine().compile_sync(REFERENCE_DOC)
  lines = code.splitlines()

  assert lines[0] == "import { MDXTag } from '@mdx-js/tag'"
  assert lines[1] == "import Video from '../components/Video'"
  assert '<MDXTag name="h1" components={components}>{`Hello, world!`}</MDXTag>' in lines
  assert "<Video />" in lines
  assert lines.index("<Video />") > lines.index('<MDXTag name="h1" components={components}>{`Hello, world!`}</MDXTag>')


def test_compile_is_a_coroutine():
  code = asyncio.run(engine().compile("hi"))
  assert "{`hi`}" in code


def test_transforms_see_their_stage_vocabulary():
  seen = {}

  def stage1(tree, ctx):
    seen["stage1"] = sorted({n.type for n in find_all(tree, ["paragraph", "element", "jsx"])})

  def stage2(tree, ctx):
    seen["stage2"] = sorted({n.type for n in find_all(tree, ["paragraph", "element", "jsx"])})

  run(engine(stage1_transforms=[stage1], stage2_transforms=[stage2]), "text\n\n<X />")
  assert seen == {"stage1": ["jsx", "paragraph"], "stage2": ["element", "jsx"]}


def test_stage1_failure_stops_the_pipeline(monkeypatch):
  calls = []

  def boom(tree, ctx):
    raise RuntimeError("stage one broke")

  def stage2(tree, ctx):
    calls.append("stage2 transform")

  def no_stage2(self, tree):
    calls.append("stage2 transpile")

  monkeypatch.setattr(MarkupTranspiler, "transpile", no_stage2)

  with pytest.raises(TransformError) as exc:
    run(engine(stage1_transforms=[boom], stage2_transforms=[stage2]), REFERENCE_DOC)

  assert exc.value.stage == "stage1"
  assert calls == []


def test_stage1_transform_can_introduce_markup():
  def add_banner(tree, ctx):
    tree.children.insert(0, Node("jsx", value="<Banner />", children=[]))

  code = engine(stage1_transforms=[add_banner]).compile_sync("# T")
  body = code.splitlines()
  assert body.index("<Banner />") < body.index('<MDXTag name="h1" components={components}>{`T`}</MDXTag>')


def test_stage2_transform_replacing_tree():
  def replace(tree, ctx):
    return Node("root", children=[Node("jsx", value="<Only />", children=[])])

  code = engine(stage2_transforms=[replace]).compile_sync("# Gone")
  assert "<Only />" in code
  assert "Gone" not in code


def test_stage2_transform_leaving_foreign_kinds_fails():
  def regress(tree, ctx):
    tree.children.append(Node("paragraph", children=[]))

  with pytest.raises(StructuralParseError, match="unknown node kind 'paragraph'"):
    engine(stage2_transforms=[regress]).compile_sync("x")


def test_structural_errors_propagate():
  with pytest.raises(StructuralParseError):
    engine().compile_sync("<Heading><Sub></Heading>")


def test_registered_transforms_by_name():
  @register_transform("test-upper", stage="stage1")
  def upper(tree, ctx):
    for node in find_all(tree, "text"):
      node.value = node.value.upper()

  assert "{`LOUD`}" in engine(stage1_transforms=["test-upper"]).compile_sync("loud")


def test_unknown_transform_name_fails_at_construction():
  with pytest.raises(ValueError, match="Unknown transform 'nope'"):
    engine(stage1_transforms=["nope"])


def test_builtin_transforms_can_be_disabled():
  doc = "https://example.com/cat.png"
  assert '"src": "https://example.com/cat.png"' in engine().compile_sync(doc)
  assert '"src"' not in engine(builtin_transforms=False).compile_sync(doc)


def test_result_collects_messages_and_trace():
  def warn(tree, ctx):
    ctx.message("heading missing", tree.children[0])

  result = run(engine(stage1_transforms=[warn]), "para")
  assert [m.reason for m in result.messages] == ["heading missing"]
  assert result.messages[0].line == 1
  assert result.messages[0].stage == "stage1"
  assert result.has_messages

  phases = [e["description"] for e in result.trace_events if e["type"] == TraceEventType.PHASE_START]
  assert phases == ["Compile", "Parse", "Stage 1", "Stage 1 Transforms", "Stage 2", "Stage 2 Transforms", "Codegen"]


def test_transform_context_shares_metadata_across_stages():
  def producer(tree, ctx):
    ctx.metadata["count"] = len(tree.children)

  def consumer(tree, ctx):
    tree.children.append(Node("text", value=f"count={ctx.metadata['count']}"))

  code = engine(stage1_transforms=[producer], stage2_transforms=[consumer]).compile_sync("a\n\nb")
  assert "{`count=2`}" in code


def test_compile_file(tmp_path):
  doc = tmp_path / "page.mdx"
  doc.write_text("# From disk\n", encoding="utf-8")
  paths = []

  def capture(tree, ctx):
    paths.append(ctx.path)

  result = engine(stage1_transforms=[capture]).compile_file(doc)
  assert "From disk" in result.code
  assert paths == [doc]


def test_stage1_transform_leaving_foreign_kinds_fails():
  def skip_ahead(tree, ctx):
    tree.children.append(Node("element", props={"tagName": "p"}, children=[]))

  with pytest.raises(StructuralParseError, match="stage1 transforms: unknown node kind 'element'"):
    engine(stage1_transforms=[skip_ahead]).compile_sync("x")


def test_invalid_plugin_settings_fail_the_transform():
  with pytest.raises(TransformError) as exc:
    engine(plugin_settings={"image_extensions": "png"}).compile_sync("x")
  assert exc.value.name == "image-autolink"
  assert isinstance(exc.value.original, ValueError)


def test_messages_are_recorded_in_trace():
  def warn(tree, ctx):
    ctx.message("no title")

  result = run(engine(stage1_transforms=[warn]), "para")
  [warning] = [e for e in result.trace_events if e["type"] == TraceEventType.WARNING]
  phase = next(e for e in result.trace_events if e["id"] == warning["parent_id"])
  assert warning["description"] == "no title"
  assert phase["description"] == "Stage 1 Transforms"


def test_file_names_are_logged_literally(tmp_path):
  doc = tmp_path / "[bold]page.mdx"
  doc.write_text("hi", encoding="utf-8")
  buffer = io.StringIO()
  set_console(Console(file=buffer, width=400))
  try:
    engine().compile_file(doc)
  finally:
    reset_console()
  assert "[bold]page.mdx" in buffer.getvalue()
