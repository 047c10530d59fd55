"""A small JavaScript lexer.

It knows just enough of the language to tell code apart from comments,
string, template and regular-expression literals, to check that brackets
balance, and to find the module's top-level ``import``/``export``
statements. Malformed input raises :class:`TransformError`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from clientpack.errors import TransformError

NAME = "name"
NUMBER = "number"
STRING = "string"
TEMPLATE = "template"
REGEX = "regex"
PUNCT = "punct"

_NAME_RE = re.compile("[A-Za-z_$\\u0080-\\uffff\\\\][\\w$\\u0080-\\uffff\\\\]*")
_NUMBER_RE = re.compile(
    r"0[xX][\da-fA-F_]+n?|0[oO][0-7_]+n?|0[bB][01_]+n?"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?n?"
)
_PUNCT_RE = re.compile(
    r">>>=|\.\.\.|===|!==|\*\*=|<<=|>>=|>>>|&&=|\|\|=|\?\?="
    r"|=>|==|!=|<=|>=|&&|\|\||\?\?|\?\.(?!\d)|\+\+|--|\+=|-=|\*=|/=|%=|&=|\|=|\^=|\*\*|<<|>>"
    r"|[{}()\[\];,<>+\-*/%&|^!~?:=.@#]"
)
_SPACE_RE = re.compile(r"[\s\N{ZERO WIDTH NO-BREAK SPACE}]+")

# After these keywords a ``/`` starts a regular expression, not a division.
_REGEX_KEYWORDS = frozenset(
    {
        "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
        "throw", "case", "do", "else", "yield", "await",
    }
)
_CLOSERS = {")": "(", "]": "[", "}": "{"}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int

    def is_punct(self, text: str) -> bool:
        return self.kind == PUNCT and self.text == text

    def is_name(self, text: str) -> bool:
        return self.kind == NAME and self.text == text


def _line(source: str, offset: int) -> int:
    return source.count("\n", 0, offset) + 1


class _Lexer:
    def __init__(self, source: str, source_name: str) -> None:
        self.source = source
        self.name = source_name or "<script>"

    def fail(self, message: str, offset: int) -> TransformError:
        return TransformError(
            f"{self.name}: {message} on line {_line(self.source, offset)}", source=self.name
        )

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def skip_space_and_comments(self, pos: int) -> int:
        source = self.source
        while pos < len(source):
            match = _SPACE_RE.match(source, pos)
            if match:
                pos = match.end()
                continue
            if source.startswith("//", pos):
                newline = source.find("\n", pos)
                pos = len(source) if newline == -1 else newline
                continue
            if source.startswith("/*", pos):
                close = source.find("*/", pos + 2)
                if close == -1:
                    raise self.fail("unterminated comment", pos)
                pos = close + 2
                continue
            break
        return pos

    def string(self, pos: int) -> int:
        source = self.source
        quote = source[pos]
        i = pos + 1
        while i < len(source):
            ch = source[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                return i + 1
            if ch in "\n\r":
                break
            i += 1
        raise self.fail("unterminated string literal", pos)

    def template(self, pos: int) -> int:
        source = self.source
        i = pos + 1
        while i < len(source):
            ch = source[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "`":
                return i + 1
            if source.startswith("${", i):
                _, i = self.tokens(i + 2, until_brace=True)
                continue
            i += 1
        raise self.fail("unterminated template literal", pos)

    def regex(self, pos: int) -> int:
        source = self.source
        i = pos + 1
        in_class = False
        while i < len(source):
            ch = source[i]
            if ch == "\\":
                i += 2
                continue
            if ch in "\n\r":
                break
            if ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                flags = _NAME_RE.match(source, i + 1)
                return flags.end() if flags else i + 1
            i += 1
        raise self.fail("unterminated regular expression", pos)

    # ------------------------------------------------------------------
    # Token stream
    # ------------------------------------------------------------------

    @staticmethod
    def regex_allowed(previous: Token | None) -> bool:
        if previous is None:
            return True
        if previous.kind == NAME:
            return previous.text in _REGEX_KEYWORDS
        if previous.kind == PUNCT:
            return previous.text not in (")", "]", "++", "--")
        return False

    def tokens(self, pos: int, until_brace: bool = False) -> tuple[list[Token], int]:
        """Lex from *pos*; with *until_brace*, stop after the ``}`` closing a substitution."""
        source = self.source
        found: list[Token] = []
        stack: list[Token] = []
        while True:
            pos = self.skip_space_and_comments(pos)
            if pos >= len(source):
                break
            ch = source[pos]
            previous = found[-1] if found else None

            if ch in "'\"":
                end, kind = self.string(pos), STRING
            elif ch == "`":
                end, kind = self.template(pos), TEMPLATE
            elif ch == "/" and self.regex_allowed(previous):
                end, kind = self.regex(pos), REGEX
            elif (match := _NUMBER_RE.match(source, pos)) and (ch.isdigit() or ch == "."):
                end, kind = match.end(), NUMBER
            elif match := _NAME_RE.match(source, pos):
                end, kind = match.end(), NAME
            elif match := _PUNCT_RE.match(source, pos):
                end, kind = match.end(), PUNCT
            else:
                raise self.fail(f"unexpected character {ch!r}", pos)

            token = Token(kind, source[pos:end], pos, end)
            pos = end
            if kind == PUNCT and token.text in "([{":
                stack.append(token)
            elif kind == PUNCT and token.text in _CLOSERS:
                if not stack:
                    if until_brace and token.text == "}":
                        return found, pos
                    raise self.fail(f"unbalanced {token.text!r}", token.start)
                opener = stack.pop()
                if opener.text != _CLOSERS[token.text]:
                    raise self.fail(
                        f"{token.text!r} does not close {opener.text!r} "
                        f"from line {_line(source, opener.start)}",
                        token.start,
                    )
            found.append(token)

        if until_brace:
            raise self.fail("unterminated template substitution", pos)
        if stack:
            raise self.fail(f"unclosed {stack[-1].text!r}", stack[-1].start)
        return found, pos


def tokenize(source: str, source_name: str = "") -> list[Token]:
    """Return the significant tokens of *source*; comments and whitespace are dropped.

    Template literals, substitutions included, are single tokens.
    """
    lexer = _Lexer(source, source_name)
    start = 0
    if source.startswith("#!"):
        newline = source.find("\n")
        start = len(source) if newline == -1 else newline
    tokens, _ = lexer.tokens(start)
    return tokens


# ---------------------------------------------------------------------------
# Module statements
# ---------------------------------------------------------------------------

IMPORT = "import"
REEXPORT = "reexport"
EXPORT_DECLARATION = "export-declaration"
EXPORT_DEFAULT = "export-default"

_DECLARATION_KEYWORDS = frozenset({"const", "let", "var", "function", "class", "async"})


@dataclass(frozen=True)
class StatementSpan:
    """A top-level module statement found in the token stream.

    For ``import`` and ``reexport`` statements the span covers the whole
    statement. For declarations it covers the ``export`` (or
    ``export default``) keywords only; ``end`` is where the exported
    declaration or expression begins.
    """

    kind: str
    start: int
    end: int


class _StatementScanner:
    def __init__(self, source: str, tokens: list[Token], source_name: str) -> None:
        self.source = source
        self.tokens = tokens
        self.name = source_name or "<module>"

    def fail(self, message: str, token: Token) -> TransformError:
        return TransformError(
            f"{self.name}: {message} on line {_line(self.source, token.start)}", source=self.name
        )

    def at(self, index: int) -> Token | None:
        return self.tokens[index] if index < len(self.tokens) else None

    def matching(self, index: int) -> int:
        """Index of the token closing the bracket at *index*."""
        depth = 0
        for i in range(index, len(self.tokens)):
            token = self.tokens[i]
            if token.kind == PUNCT and token.text in "([{":
                depth += 1
            elif token.kind == PUNCT and token.text in ")]}":
                depth -= 1
                if depth == 0:
                    return i
        raise self.fail("unclosed bracket", self.tokens[index])

    def tail(self, index: int, head: Token) -> int:
        """Consume the specifier string, optional attributes and ``;``; return the last index."""
        token = self.at(index)
        if token is None or token.kind != STRING:
            raise self.fail("expected a module specifier string", token or head)
        last = index
        following = self.at(last + 1)
        if following is not None and (following.is_name("assert") or following.is_name("with")):
            brace = self.at(last + 2)
            if brace is None or not brace.is_punct("{"):
                raise self.fail("malformed import attributes", following)
            last = self.matching(last + 2)
        following = self.at(last + 1)
        if following is not None and following.is_punct(";"):
            last += 1
        return last

    def import_statement(self, index: int) -> int:
        head = self.tokens[index]
        i = index + 1
        if (token := self.at(i)) is not None and token.kind == STRING:
            return self.tail(i, head)
        while (token := self.at(i)) is not None:
            if token.is_punct("{"):
                i = self.matching(i) + 1
                continue
            if token.is_name("from"):
                return self.tail(i + 1, head)
            if token.is_punct(";"):
                break
            i += 1
        raise self.fail("malformed import statement", head)

    def reexport_statement(self, index: int) -> int:
        head = self.tokens[index]
        i = index + 1
        token = self.at(i)
        if token is not None and token.is_punct("{"):
            i = self.matching(i) + 1
            token = self.at(i)
            if token is None or not token.is_name("from"):
                return i if token is not None and token.is_punct(";") else i - 1
            return self.tail(i + 1, head)
        while (token := self.at(i)) is not None:
            if token.is_name("from"):
                return self.tail(i + 1, head)
            i += 1
        raise self.fail("malformed export statement", head)

    def scan(self) -> list[StatementSpan]:
        spans: list[StatementSpan] = []
        depth = 0
        i = 0
        while i < len(self.tokens):
            token = self.tokens[i]
            if token.kind == PUNCT and token.text in "([{":
                depth += 1
            elif token.kind == PUNCT and token.text in ")]}":
                depth -= 1
            elif depth == 0 and token.kind == NAME and token.text in ("import", "export"):
                previous = self.tokens[i - 1] if i else None
                following = self.at(i + 1)
                member = previous is not None and previous.kind == PUNCT and previous.text in (".", "?.")
                if member or following is None:
                    pass
                elif token.text == "import":
                    if not (following.is_punct("(") or following.is_punct(".")):
                        last = self.import_statement(i)
                        spans.append(StatementSpan(IMPORT, token.start, self.tokens[last].end))
                        i = last + 1
                        continue
                elif following.is_punct("{") or following.is_punct("*"):
                    last = self.reexport_statement(i)
                    spans.append(StatementSpan(REEXPORT, token.start, self.tokens[last].end))
                    i = last + 1
                    continue
                elif following.is_name("default"):
                    target = self.at(i + 2)
                    if target is None:
                        raise self.fail("missing default export", following)
                    spans.append(StatementSpan(EXPORT_DEFAULT, token.start, target.start))
                elif following.kind == NAME and following.text in _DECLARATION_KEYWORDS:
                    spans.append(StatementSpan(EXPORT_DECLARATION, token.start, following.start))
                else:
                    raise self.fail("unsupported export form", token)
            i += 1
        return spans


def find_module_statements(source: str, tokens: list[Token], source_name: str = "") -> list[StatementSpan]:
    """Locate the top-level import/export statements of a module."""
    return _StatementScanner(source, tokens, source_name).scan()
