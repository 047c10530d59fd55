"""Lark Transformer that converts import/export statement headers into records."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from lark import Lark, Token, Transformer
from lark.exceptions import LarkError

from clientpack.errors import TransformError

GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"

DEFAULT = "default"
NAMESPACE = "*"


@dataclass(frozen=True)
class ImportBinding:
    """``imported`` is an export name, ``default`` or ``*`` (namespace)."""

    imported: str
    local: str


@dataclass(frozen=True)
class ExportBinding:
    local: str
    exported: str


@dataclass(frozen=True)
class ImportStatement:
    specifier: str
    bindings: list[ImportBinding] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def import_type(self) -> str:
        return self.attributes.get("type", "")


@dataclass(frozen=True)
class ExportStatement:
    """An export list, optionally re-exported from another module.

    ``kind`` is ``list`` (``export {a}``), ``from`` (``export {a} from "m"``)
    or ``all`` (``export * from "m"`` / ``export * as ns from "m"``).
    """

    kind: str
    bindings: list[ExportBinding] = field(default_factory=list)
    specifier: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)
    namespace: str | None = None

    @property
    def import_type(self) -> str:
        return self.attributes.get("type", "")


Statement = ImportStatement | ExportStatement


class _Specifier:
    def __init__(self, value: str):
        self.value = value


def _unquote(token: Token | str) -> str:
    raw = str(token)
    if raw[:1] in ("'", '"'):
        return raw[1:-1]
    return raw


class StatementTransformer(Transformer):  # type: ignore[type-arg]
    """Transform a statement parse tree into ImportStatement/ExportStatement."""

    # ---- leaves ----

    def string_name(self, items: list[Token]) -> str:
        return _unquote(items[0])

    def specifier(self, items: list[Token]) -> _Specifier:
        return _Specifier(_unquote(items[0]))

    def attribute(self, items: list[Token]) -> tuple[str, str]:
        return (_unquote(items[0]), _unquote(items[1]))

    def attributes(self, items: list[tuple[str, str]]) -> dict[str, str]:
        return dict(items)

    # ---- import clauses ----

    def default_binding(self, items: list[Token]) -> list[ImportBinding]:
        return [ImportBinding(imported=DEFAULT, local=str(items[0]))]

    def namespace_import(self, items: list[Token]) -> list[ImportBinding]:
        return [ImportBinding(imported=NAMESPACE, local=str(items[0]))]

    def import_spec(self, items: list[object]) -> ImportBinding:
        imported = str(items[0])
        local = str(items[1]) if len(items) > 1 else imported
        return ImportBinding(imported=imported, local=local)

    def named_imports(self, items: list[ImportBinding]) -> list[ImportBinding]:
        return list(items)

    def import_clause(self, items: list[list[ImportBinding]]) -> list[ImportBinding]:
        return [binding for group in items for binding in group]

    # ---- export clauses ----

    def export_spec(self, items: list[object]) -> ExportBinding:
        local = str(items[0])
        exported = str(items[1]) if len(items) > 1 else local
        return ExportBinding(local=local, exported=exported)

    def named_exports(self, items: list[ExportBinding]) -> list[ExportBinding]:
        return list(items)

    # ---- statements ----

    def import_from(self, items: list[object]) -> ImportStatement:
        bindings, spec = items[0], items[1]
        attrs = items[2] if len(items) > 2 else {}
        return ImportStatement(specifier=spec.value, bindings=bindings, attributes=attrs)  # type: ignore[union-attr,arg-type]

    def import_bare(self, items: list[object]) -> ImportStatement:
        spec = items[0]
        attrs = items[1] if len(items) > 1 else {}
        return ImportStatement(specifier=spec.value, attributes=attrs)  # type: ignore[union-attr,arg-type]

    def export_all(self, items: list[object]) -> ExportStatement:
        namespace = None
        if items and isinstance(items[0], str):
            namespace = items[0]
            items = items[1:]
        spec = items[0]
        attrs = items[1] if len(items) > 1 else {}
        return ExportStatement(
            kind="all",
            specifier=spec.value,  # type: ignore[union-attr]
            attributes=attrs,  # type: ignore[arg-type]
            namespace=namespace,
        )

    def export_from(self, items: list[object]) -> ExportStatement:
        bindings, spec = items[0], items[1]
        attrs = items[2] if len(items) > 2 else {}
        return ExportStatement(
            kind="from",
            bindings=bindings,  # type: ignore[arg-type]
            specifier=spec.value,  # type: ignore[union-attr]
            attributes=attrs,  # type: ignore[arg-type]
        )

    def export_list(self, items: list[object]) -> ExportStatement:
        return ExportStatement(kind="list", bindings=items[0])  # type: ignore[arg-type]

    def start(self, items: list[Statement]) -> Statement:
        return items[0]


@lru_cache(maxsize=1)
def _parser() -> Lark:
    return Lark(GRAMMAR_PATH.read_text(encoding="utf-8"), parser="lalr", start="start")


def parse_statement(source: str, module_id: str = "") -> Statement:
    """Parse a single import or export statement header."""
    try:
        tree = _parser().parse(source)
    except LarkError as exc:
        line = getattr(exc, "line", "?")
        raise TransformError(
            f"{module_id or '<module>'}: cannot parse statement {source.strip()!r} (line {line})",
            source=module_id,
            cause=exc,
        ) from exc
    return StatementTransformer().transform(tree)
