"""ModuleBundler: links an entry module's static import graph into one script."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from clientpack.bundler import runtime
from clientpack.bundler.lexer import (
    EXPORT_DECLARATION,
    EXPORT_DEFAULT,
    StatementSpan,
    find_module_statements,
    tokenize,
)
from clientpack.bundler.scope import (
    CALLEE,
    SHORTHAND,
    TOP_LEVEL_DECLARATIONS,
    ModuleTree,
    Reference,
)
from clientpack.bundler.statements import (
    DEFAULT,
    NAMESPACE,
    ExportStatement,
    ImportStatement,
    Statement,
    parse_statement,
)
from clientpack.errors import TransformError
from clientpack.model.bundle import BundleOutput, Module, ModuleKind
from clientpack.model.diagnostic import (
    CIRCULAR_DEPENDENCY,
    MISSING_EXPORT,
    UNKNOWN_IMPORT_TYPE,
    Diagnostic,
    Severity,
)
from clientpack.transforms import apply_transforms, build_transforms
from clientpack.transforms.base import Transform

logger = logging.getLogger(__name__)

# What follows ``export default``: a function or class declaration, or an expression.
_DEFAULT_DECL_RE = re.compile(
    r"(?P<kind>(?:async\s+)?function\b(?:\s*\*)?|class\b)\s*(?P<name>[\w$]+)?"
)

_KIND_BY_EXTENSION = {
    ".js": ModuleKind.JAVASCRIPT,
    ".mjs": ModuleKind.JAVASCRIPT,
    ".css": ModuleKind.CSS,
    ".json": ModuleKind.JSON,
}

_KIND_BY_IMPORT_TYPE = {
    "css": ModuleKind.CSS,
    "json": ModuleKind.JSON,
}

DEFAULT_LOCAL = "__default"


@dataclass
class _Link:
    """Bundler-private bookkeeping for one JavaScript module."""

    statements: list[tuple[int, int, Statement]] = field(default_factory=list)
    resolved: dict[str, str] = field(default_factory=dict)
    # (start, end, replacement) edits for export keywords
    keyword_edits: list[tuple[int, int, str]] = field(default_factory=list)
    declared_exports: list[str] = field(default_factory=list)
    default_local: str | None = None
    references: list[Reference] = field(default_factory=list)


def _blank(text: str) -> str:
    return re.sub(r"[^\r\n]", " ", text)


def log_diagnostic(diagnostic: Diagnostic) -> None:
    """Default diagnostic handler: ``INFO`` findings stay at debug level."""
    if diagnostic.severity is Severity.INFO:
        logger.debug("%s", diagnostic)
    else:
        logger.warning("%s", diagnostic)


class ModuleBundler:
    """Resolve and link the static import graph rooted at an entry module.

    Every module's source runs through *transforms* (in order) before it is
    linked. Modules are emitted as factories executed on first ``require``.
    Exports are exposed through getters and every use of an imported name
    reads through the exporting module's record, so bindings stay live and
    circular imports resolve the way native modules do.
    """

    def __init__(
        self,
        transforms: Sequence[Transform] | None = None,
        on_diagnostic: Callable[[Diagnostic], None] | None = None,
    ) -> None:
        self.transforms = list(transforms) if transforms is not None else build_transforms()
        self.on_diagnostic = on_diagnostic or log_diagnostic

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def bundle(self, entry: Path) -> BundleOutput:
        entry = Path(entry)
        self._base = entry.parent
        self._modules: dict[str, Module] = {}
        self._links: dict[str, _Link] = {}
        self._diagnostics: list[Diagnostic] = []
        self._order: list[str] = []

        entry_kind = _KIND_BY_EXTENSION.get(entry.suffix.lower(), ModuleKind.JAVASCRIPT)
        entry_module = self._load(entry, entry_kind)
        self._visit(entry_module.id, stack=[])
        self._check_exports()

        parts = [runtime.PRELUDE]
        for module_id in self._order:
            parts.append(runtime.define(module_id, self._emit(self._modules[module_id])))
        parts.append(runtime.epilogue(entry_module.id))

        modules = [self._modules[mid] for mid in self._order]
        logger.info("Bundled %d module(s) from %s", len(modules), entry)
        return BundleOutput(code="".join(parts), modules=modules, diagnostics=self._diagnostics)

    # ------------------------------------------------------------------
    # Loading and resolution
    # ------------------------------------------------------------------

    def _module_id(self, path: Path) -> str:
        return Path(os.path.relpath(path, self._base)).as_posix()

    def _load(self, path: Path, kind: ModuleKind) -> Module:
        module_id = self._module_id(path)
        if module_id in self._modules:
            return self._modules[module_id]
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise TransformError(f"Cannot read module {path}: {exc}", source=module_id, cause=exc) from exc

        source = apply_transforms(source, path, self.transforms)
        module = Module(id=module_id, path=path, kind=kind, source=source)
        self._modules[module_id] = module
        logger.debug("Loaded %s as %s", module_id, kind.value)

        if kind is ModuleKind.JAVASCRIPT:
            self._scan(module)
        else:
            module.exports = {DEFAULT}
        return module

    def _resolve(self, specifier: str, importer: Module) -> Path:
        if not specifier.startswith(("./", "../")):
            raise TransformError(
                f"{importer.id}: cannot inline non-relative import {specifier!r}",
                source=importer.id,
            )
        path = Path(os.path.normpath(importer.path.parent / specifier))
        if not path.is_file() and not path.suffix and path.with_suffix(".js").is_file():
            path = path.with_suffix(".js")
        if not path.is_file():
            raise TransformError(
                f"{importer.id}: could not resolve {specifier!r} ({path} does not exist)",
                source=importer.id,
            )
        return path

    def _kind_for(self, statement: Statement, path: Path, importer: Module) -> ModuleKind:
        import_type = statement.import_type
        if import_type in _KIND_BY_IMPORT_TYPE:
            return _KIND_BY_IMPORT_TYPE[import_type]
        if import_type and import_type != "javascript":
            self._report(
                Diagnostic(
                    code=UNKNOWN_IMPORT_TYPE,
                    severity=Severity.WARNING,
                    message=f"unknown import type {import_type!r} for {statement.specifier!r}",
                    module_id=importer.id,
                )
            )
        return _KIND_BY_EXTENSION.get(path.suffix.lower(), ModuleKind.JAVASCRIPT)

    def _scan(self, module: Module) -> None:
        """Find import/export statements, record dependencies and exports."""
        source = module.source
        spans = find_module_statements(source, tokenize(source, module.id), module.id)

        # The body as a plain script: statements blanked, export keywords
        # removed; offsets are unchanged.
        masked: list[str] = []
        cursor = 0
        for span in spans:
            masked.append(source[cursor : span.start])
            keyword = source[span.start : span.end]
            if span.kind == EXPORT_DEFAULT:
                masked.append("void" + _blank(keyword[4:]))
            else:
                masked.append(_blank(keyword))
            cursor = span.end
        masked.append(source[cursor:])
        tree = ModuleTree("".join(masked), module.id)

        link = _Link()
        for span in spans:
            if span.kind == EXPORT_DECLARATION:
                self._scan_declaration(module, link, tree, span)
            elif span.kind == EXPORT_DEFAULT:
                self._scan_default(module, link, span)
            else:
                statement = parse_statement(source[span.start : span.end], module.id)
                link.statements.append((span.start, span.end, statement))

        imported: set[str] = set()
        for _, _, statement in link.statements:
            if isinstance(statement, ImportStatement):
                imported.update(b.local for b in statement.bindings if b.imported != NAMESPACE)
            elif statement.kind == "all" and statement.namespace is None:
                module.star_exports = True
            elif statement.kind == "all":
                module.exports.add(statement.namespace)  # type: ignore[arg-type]
            else:
                module.exports.update(b.exported for b in statement.bindings)
        link.references = tree.references(imported)
        self._links[module.id] = link

        for _, _, statement in link.statements:
            if statement.specifier is None:
                continue
            path = self._resolve(statement.specifier, module)
            dependency = self._load(path, self._kind_for(statement, path, module))
            link.resolved[statement.specifier] = dependency.id
            if dependency.id not in module.dependencies:
                module.dependencies.append(dependency.id)

    def _scan_declaration(self, module: Module, link: _Link, tree: ModuleTree, span: StatementSpan) -> None:
        node = tree.top_level_at(span.end)
        names = tree.declared_names(node) if node is not None and node.type in TOP_LEVEL_DECLARATIONS else set()
        if not names:
            line = module.source.count("\n", 0, span.start) + 1
            raise TransformError(f"{module.id}: unsupported export declaration on line {line}", source=module.id)
        ordered = sorted(names)
        link.declared_exports.extend(ordered)
        module.exports.update(ordered)
        link.keyword_edits.append((span.start, span.end, ""))

    def _scan_default(self, module: Module, link: _Link, span: StatementSpan) -> None:
        module.exports.add(DEFAULT)
        match = _DEFAULT_DECL_RE.match(module.source, span.end)
        if match is None:
            link.default_local = DEFAULT_LOCAL
            link.keyword_edits.append((span.start, span.end, f"const {DEFAULT_LOCAL} = "))
            return
        link.keyword_edits.append((span.start, span.end, ""))
        name = match.group("name")
        if name and name != "extends":
            link.default_local = name
        else:
            # Anonymous function or class declarations get a local name.
            link.default_local = DEFAULT_LOCAL
            insert_at = match.end("kind")
            link.keyword_edits.append((insert_at, insert_at, f" {DEFAULT_LOCAL}"))

    def _visit(self, module_id: str, stack: list[str]) -> None:
        if module_id in self._order:
            return
        if module_id in stack:
            cycle = stack[stack.index(module_id):] + [module_id]
            self._report(
                Diagnostic(
                    code=CIRCULAR_DEPENDENCY,
                    severity=Severity.INFO,
                    message="circular dependency: " + " -> ".join(cycle),
                    module_id=module_id,
                )
            )
            return
        stack.append(module_id)
        for dependency in self._modules[module_id].dependencies:
            self._visit(dependency, stack)
        stack.pop()
        self._order.append(module_id)

    def _check_exports(self) -> None:
        for module_id, link in self._links.items():
            for _, _, statement in link.statements:
                if statement.specifier is None:
                    continue
                target = self._modules[link.resolved[statement.specifier]]
                if isinstance(statement, ImportStatement):
                    names = [b.imported for b in statement.bindings if b.imported != NAMESPACE]
                elif statement.kind == "from":
                    names = [b.local for b in statement.bindings]
                else:
                    names = []
                for name in names:
                    if not target.provides(name):
                        self._report(
                            Diagnostic(
                                code=MISSING_EXPORT,
                                severity=Severity.WARNING,
                                message=f"{name!r} is not exported by {target.id}",
                                module_id=module_id,
                            )
                        )

    def _report(self, diagnostic: Diagnostic) -> None:
        self._diagnostics.append(diagnostic)
        self.on_diagnostic(diagnostic)

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def _emit(self, module: Module) -> str:
        if module.kind is ModuleKind.CSS:
            return (
                "const sheet = new CSSStyleSheet();\n"
                f"sheet.replaceSync({runtime.js_string(module.source)});\n"
                + runtime.export_getters({DEFAULT: "sheet"})
            )
        if module.kind is ModuleKind.JSON:
            try:
                value = json.loads(module.source)
            except ValueError as exc:
                raise TransformError(f"{module.id}: invalid JSON: {exc}", source=module.id, cause=exc) from exc
            literal = json.dumps(value).replace("</", "<\\/")
            return f"const data = {literal};\n" + runtime.export_getters({DEFAULT: "data"})
        return self._emit_javascript(module)

    def _emit_javascript(self, module: Module) -> str:
        link = self._links[module.id]
        prologue: list[str] = []
        bindings: dict[str, str] = {}
        getters: dict[str, str] = {}
        edits: list[tuple[int, int, str]] = list(link.keyword_edits)

        for index, (start, end, statement) in enumerate(link.statements):
            edits.append((start, end, ";"))
            if not isinstance(statement, ImportStatement):
                continue
            target = runtime.require(link.resolved[statement.specifier])
            if not statement.bindings:
                prologue.append(f"{target};")
                continue
            namespace = [b.local for b in statement.bindings if b.imported == NAMESPACE]
            record = namespace[0] if namespace else f"__m{index}"
            prologue.append(f"const {record} = {target};")
            for binding in statement.bindings:
                if binding.imported != NAMESPACE:
                    bindings[binding.local] = runtime.member(record, binding.imported)

        for name in link.declared_exports:
            getters[name] = name
        if link.default_local is not None:
            getters[DEFAULT] = link.default_local

        for index, (_, _, statement) in enumerate(link.statements):
            if not isinstance(statement, ExportStatement):
                continue
            if statement.kind == "list":
                for binding in statement.bindings:
                    getters[binding.exported] = bindings.get(binding.local, binding.local)
                continue
            target = runtime.require(link.resolved[statement.specifier])  # type: ignore[index]
            if statement.kind == "all" and statement.namespace is None:
                prologue.append(f"__exportStar(__exports, {target});")
                continue
            record = f"__m{index}"
            prologue.append(f"const {record} = {target};")
            if statement.kind == "all":
                getters[statement.namespace] = record  # type: ignore[index]
            else:
                for binding in statement.bindings:
                    getters[binding.exported] = runtime.member(record, binding.local)

        for ref in link.references:
            expression = bindings[ref.name]
            if ref.role == CALLEE:
                expression = f"(0, {expression})"
            elif ref.role == SHORTHAND:
                expression = f"{ref.name}: {expression}"
            edits.append((ref.start, ref.end, expression))

        source = module.source
        for start, end, replacement in sorted(edits, key=lambda edit: (edit[0], edit[1]), reverse=True):
            source = source[:start] + replacement + source[end:]

        header = "".join(f"{line}\n" for line in prologue)
        return runtime.export_getters(getters) + header + source
