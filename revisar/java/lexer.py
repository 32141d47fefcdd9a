# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Java tokenizer.

This is a lexer, not a parser: it turns source text into a flat list of
tokens with positions and throws away comments and whitespace. Everything
structural (bracket nesting, type-argument lists) happens in the tree
builder on top of it.

One deliberate quirk: `>` is always its own token. Java's shift operators
`>>` and `>>>` come out as several `>` tokens with `spaced=False`, which is
what lets `List<List<String>>` close two type-argument lists. The compound
assignments `>=`, `>>=` and `>>>=` stay whole because they can never close
a type argument list.
"""

import re
from typing import NamedTuple

IDENT = "IDENT"
KEYWORD = "KEYWORD"
STRING = "STRING"
CHAR = "CHAR"
NUMBER = "NUMBER"
OPERATOR = "OPERATOR"
SEPARATOR = "SEPARATOR"
ANNOTATION = "ANNOTATION"

LITERAL_KINDS = frozenset({STRING, CHAR, NUMBER})

JAVA_KEYWORDS = frozenset(
    {
        "abstract", "assert", "boolean", "break", "byte", "case", "catch",
        "char", "class", "const", "continue", "default", "do", "double",
        "else", "enum", "extends", "final", "finally", "float", "for", "goto",
        "if", "implements", "import", "instanceof", "int", "interface",
        "long", "native", "new", "package", "private", "protected", "public",
        "return", "short", "static", "strictfp", "super", "switch",
        "synchronized", "this", "throw", "throws", "transient", "try", "var",
        "void", "volatile", "while", "true", "false", "null",
    }
)


class JavaSyntaxError(ValueError):
    """Raised for source text we can't tokenize or bracket-match."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


class Token(NamedTuple):
    """One lexical token and where it came from."""

    kind: str
    text: str
    line: int
    start: int
    end: int
    spaced: bool


_OPERATORS = [
    ">>>=", "<<=", ">>=", "...", "->", "::", "++", "--", "&&", "||",
    "==", "!=", "<=", ">=", "+=", "-=", "*=", "/=", "&=", "|=", "^=", "%=",
    "<<", "+", "-", "*", "/", "%", "=", "<", ">", "!", "~", "?", ":",
    "&", "|", "^",
]

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<ws>\s+)
    | (?P<line_comment>//[^\n]*)
    | (?P<block_comment>/\*.*?\*/)
    | (?P<open_comment>/\*)
    | (?P<text_block>\"\"\"[\s\S]*?\"\"\")
    | (?P<string>"(?:[^"\\\n]|\\.)*")
    | (?P<open_string>")
    | (?P<char>'(?:[^'\\\n]|\\.)+')
    | (?P<number>
          0[xX][0-9a-fA-F_]+[lL]?
        | 0[bB][01_]+[lL]?
        | (?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?[fFdDlL]?
      )
    | (?P<annotation>@\s*(?:[^\W\d]|\$)[\w$]*(?:\.(?:[^\W\d]|\$)[\w$]*)*)
    | (?P<word>(?:[^\W\d]|\$)[\w$]*)
    | (?P<operator>"""
    + "|".join(re.escape(op) for op in _OPERATORS)
    + r""")
    | (?P<separator>[()\[\]{};,.])
    """,
    re.VERBOSE | re.DOTALL,
)


def tokenize(source: str) -> list[Token]:
    """
    Split Java source into tokens.

    Raises:
        JavaSyntaxError: On unterminated comments or strings, or characters
            that can't start any Java token.
    """
    tokens: list[Token] = []
    position = 0
    line = 1
    spaced = True
    length = len(source)

    while position < length:
        match = _TOKEN_PATTERN.match(source, position)
        if match is None:
            raise JavaSyntaxError(f"unexpected character {source[position]!r}", line)

        group = match.lastgroup
        text = match.group()

        if group == "open_comment":
            raise JavaSyntaxError("unterminated block comment", line)
        if group == "open_string":
            raise JavaSyntaxError("unterminated string literal", line)

        if group in ("ws", "line_comment", "block_comment"):
            spaced = True
        else:
            if group == "word":
                kind = KEYWORD if text in JAVA_KEYWORDS else IDENT
            elif group in ("string", "text_block"):
                kind = STRING
            elif group == "char":
                kind = CHAR
            elif group == "number":
                kind = NUMBER
            elif group == "annotation":
                kind = ANNOTATION
                text = "@" + text[1:].strip()
            elif group == "separator":
                kind = SEPARATOR
            else:
                kind = OPERATOR
            tokens.append(Token(kind, text, line, match.start(), match.end(), spaced))
            spaced = False

        line += match.group().count("\n")
        position = match.end()

    return tokens
