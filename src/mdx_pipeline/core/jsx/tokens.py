"""
Embedded Markup Tokenizer.

Decomposes raw embedded-markup source (e.g. `<Note kind="tip">Hi {name}</Note>`)
into a stream of tag-level `Token` objects. Only tag boundaries are recognized;
attribute lists are validated for shape (quoted strings, `{...}` expressions,
spread attributes) but not interpreted.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Generator, Optional

from mdx_pipeline.core.errors import StructuralParseError
from mdx_pipeline.core.lexing import scan_braces


class TokenKind(Enum):
  """Enumeration of embedded-markup token types."""

  OPEN_TAG = auto()  # <Note kind="tip">
  SELF_CLOSING = auto()  # <Video />
  CLOSE_TAG = auto()  # </Note>
  COMMENT = auto()  # <!-- note -->
  TEXT = auto()  # anything between tags, including {expressions}


@dataclass
class Token:
  """
  A lexical unit.

  Attributes:
      kind (TokenKind): The type of token.
      name (str): Tag name for tag tokens ("" for fragments and non-tags).
      start (int): Offset of the first character.
      end (int): Offset just past the last character.
  """

  kind: TokenKind
  name: str
  start: int
  end: int


class MarkupSyntaxError(StructuralParseError):
  """Lexical failure inside embedded markup, located by offset."""

  def __init__(self, reason: str, offset: int):
    self.offset = offset
    super().__init__(reason)


class MarkupLexer:
  """
  Scanner-based lexer for embedded markup.

  A `<` only starts a tag when followed by a name, `/`, `>` or `!--`;
  otherwise it is ordinary text (e.g. `a < b`). Braces in text are skipped as
  balanced expression groups so that `{a < b}` never yields a tag.
  """

  _NAME_RE = re.compile(r"[A-Za-z_$][\w$.:-]*")
  _CLOSE_RE = re.compile(r"</\s*([A-Za-z_$][\w$.:-]*)?\s*>")
  _ATTR_NAME_RE = re.compile(r"[^\s=/>{}\"'<]+")
  _UNQUOTED_RE = re.compile(r"[^\s\"'=<>`]+")

  def __init__(self, source: str):
    self.source = source

  def tokenize(self) -> Generator[Token, None, None]:
    """
    Yields tokens lazily.

    Raises:
        MarkupSyntaxError: On an unterminated tag, comment or attribute.
    """
    src = self.source
    n = len(src)
    pos = 0
    text_start = 0

    while pos < n:
      ch = src[pos]
      if ch == "<":
        tok = self._scan_tag(pos)
        if tok is not None:
          if text_start < pos:
            yield Token(TokenKind.TEXT, "", text_start, pos)
          yield tok
          pos = tok.end
          text_start = pos
          continue
      elif ch == "{":
        end = scan_braces(src, pos)
        if end is not None:
          pos = end
          continue
      pos += 1

    if text_start < n:
      yield Token(TokenKind.TEXT, "", text_start, n)

  def _scan_tag(self, pos: int) -> Optional[Token]:
    src = self.source

    if src.startswith("<!--", pos):
      end = src.find("-->", pos + 4)
      if end == -1:
        raise MarkupSyntaxError("Unterminated comment", pos)
      return Token(TokenKind.COMMENT, "", pos, end + 3)

    if src.startswith("</", pos):
      m = self._CLOSE_RE.match(src, pos)
      if m:
        return Token(TokenKind.CLOSE_TAG, m.group(1) or "", pos, m.end())
      nxt = src[pos + 2 : pos + 3]
      if nxt and (nxt == ">" or self._NAME_RE.match(nxt)):
        raise MarkupSyntaxError("Malformed closing tag", pos)
      return None

    if src.startswith("<>", pos):
      return Token(TokenKind.OPEN_TAG, "", pos, pos + 2)

    m = self._NAME_RE.match(src, pos + 1)
    if not m:
      return None
    return self._scan_attributes(pos, m.group(), m.end())

  def _scan_attributes(self, start: int, name: str, pos: int) -> Token:
    src = self.source
    n = len(src)

    while True:
      pos = self._skip_ws(pos)
      if pos >= n:
        raise MarkupSyntaxError(f"Unterminated <{name}> tag", start)

      if src.startswith("/>", pos):
        return Token(TokenKind.SELF_CLOSING, name, start, pos + 2)
      if src[pos] == ">":
        return Token(TokenKind.OPEN_TAG, name, start, pos + 1)

      if src[pos] == "{":
        # Spread attribute: {...props}
        end = scan_braces(src, pos)
        if end is None:
          raise MarkupSyntaxError(f"Unbalanced expression in <{name}> tag", pos)
        pos = end
        continue

      m = self._ATTR_NAME_RE.match(src, pos)
      if not m:
        raise MarkupSyntaxError(f"Unexpected character {src[pos]!r} in <{name}> tag", pos)
      pos = self._skip_ws(m.end())
      if pos < n and src[pos] == "=":
        pos = self._scan_value(name, self._skip_ws(pos + 1))

  def _scan_value(self, name: str, pos: int) -> int:
    src = self.source
    if pos >= len(src):
      raise MarkupSyntaxError(f"Missing attribute value in <{name}> tag", pos)

    ch = src[pos]
    if ch in "\"'":
      end = src.find(ch, pos + 1)
      if end == -1:
        raise MarkupSyntaxError(f"Unterminated attribute value in <{name}> tag", pos)
      return end + 1

    if ch == "{":
      end = scan_braces(src, pos)
      if end is None:
        raise MarkupSyntaxError(f"Unbalanced expression in <{name}> tag", pos)
      return end

    m = self._UNQUOTED_RE.match(src, pos)
    if not m:
      raise MarkupSyntaxError(f"Invalid attribute value in <{name}> tag", pos)
    end = m.end()
    # `<img src=a.png/>`: the slash belongs to the tag terminator
    if src[end - 1] == "/" and src.startswith(">", end):
      end -= 1
    return end

  def _skip_ws(self, pos: int) -> int:
    src = self.source
    while pos < len(src) and src[pos].isspace():
      pos += 1
    return pos
