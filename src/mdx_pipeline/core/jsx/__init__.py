"""
Embedded Markup (JSX) Grammar.

Tag-level lexing and open/close matching for raw markup blocks. This is the
one place in the pipeline where markup syntax, not Markdown syntax, governs
parsing.
"""

from mdx_pipeline.core.jsx.parser import MarkupParser, parse_markup_children, scan_element
from mdx_pipeline.core.jsx.tokens import MarkupLexer, Token, TokenKind

__all__ = ["MarkupParser", "MarkupLexer", "Token", "TokenKind", "parse_markup_children", "scan_element"]
