"""Tests for the ModuleBundler."""

import base64
import logging
from pathlib import Path

import pytest

from clientpack.bundler import ModuleBundler
from clientpack.errors import ReadError, TransformError
from clientpack.minify import JSMinifier
from clientpack.model import Diagnostic, ModuleKind
from clientpack.model.diagnostic import CIRCULAR_DEPENDENCY, MISSING_EXPORT, UNKNOWN_IMPORT_TYPE


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write(root: Path, files: dict[str, str]) -> None:
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


def _bundle(root: Path, files: dict[str, str], entry: str = "main.js", **kwargs):
    _write(root, files)
    collected: list[Diagnostic] = []
    bundler = ModuleBundler(on_diagnostic=collected.append, **kwargs)
    return bundler.bundle(root / entry), collected


# ---------------------------------------------------------------------------
# Linking
# ---------------------------------------------------------------------------


class TestLinking:
    def test_single_module(self, tmp_path: Path):
        out, diags = _bundle(tmp_path, {"main.js": "export const x = 1;\nconsole.log(x);\n"})
        assert out.module_ids == ["main.js"]
        assert '__modules["main.js"] = (__exports) => {' in out.code
        assert '__export(__exports, { "x": () => x });' in out.code
        assert "const x = 1;" in out.code
        assert "export const" not in out.code
        assert out.code.rstrip().endswith('__require("main.js");\n})();'.rstrip())
        assert diags == []

    def test_dependencies_are_emitted_first(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": (
                    'import { greet as hi } from "./lib/greet.js";\n'
                    'import styles from "./style.css" assert { type: "css" };\n'
                    "hi();\n"
                    "document.adoptedStyleSheets = [styles];\n"
                ),
                "lib/greet.js": 'export function greet() { return "hi"; }\n',
                "style.css": "body { color: red; }\n",
            },
        )
        assert out.module_ids == ["lib/greet.js", "style.css", "main.js"]
        assert 'const __m0 = __require("lib/greet.js");' in out.code
        assert 'const __m1 = __require("style.css");' in out.code
        assert "(0, __m0.greet)();" in out.code
        assert "[__m1.default]" in out.code
        assert 'sheet.replaceSync("body { color: red; }' in out.code
        assert out.modules[1].kind is ModuleKind.CSS
        assert out.modules[2].dependencies == ["lib/greet.js", "style.css"]

    def test_namespace_and_side_effect_imports(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": 'import * as util from "./util.js";\nimport "./setup.js";\nutil.run();\n',
                "util.js": "export function run() {}\n",
                "setup.js": "window.ready = true;\n",
            },
        )
        assert 'const util = __require("util.js");' in out.code
        assert '__require("setup.js");' in out.code

    def test_extensionless_specifier_resolves_to_js(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {"main.js": 'import { a } from "./a";\n', "a.js": "export const a = 1;\n"},
        )
        assert out.module_ids == ["a.js", "main.js"]

    def test_shared_dependency_emitted_once(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": 'import "./a.js";\nimport "./b.js";\n',
                "a.js": 'import "./shared.js";\n',
                "b.js": 'import "./shared.js";\n',
                "shared.js": "window.shared = 1;\n",
            },
        )
        assert out.module_ids == ["shared.js", "a.js", "b.js", "main.js"]
        assert out.code.count('__modules["shared.js"]') == 1


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------


class TestExports:
    def test_anonymous_default_function(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": 'import f from "./lib.js";\nf();\n',
                "lib.js": "export default function () { return 1; }\n",
            },
        )
        assert "function __default () { return 1; }" in out.code
        assert '"default": () => __default' in out.code

    def test_named_default_class(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": 'import Widget from "./widget.js";\nnew Widget();\n',
                "widget.js": "export default class Widget {}\n",
            },
        )
        assert "class Widget {}" in out.code
        assert '"default": () => Widget' in out.code

    def test_default_expression(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {"main.js": 'import n from "./n.js";\n', "n.js": "export default 40 + 2;\n"},
        )
        assert "const __default = 40 + 2;" in out.code

    def test_export_list_and_star(self, tmp_path: Path):
        out, diags = _bundle(
            tmp_path,
            {
                "main.js": 'import { alpha, m } from "./lib.js";\n',
                "lib.js": 'const a = 1;\nexport { a as alpha };\nexport * from "./more.js";\n',
                "more.js": "export const m = 2;\n",
            },
        )
        assert '"alpha": () => a' in out.code
        assert '__exportStar(__exports, __require("more.js"));' in out.code
        assert diags == []

    def test_reexport_named(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": 'import { b } from "./lib.js";\n',
                "lib.js": 'export { a as b } from "./a.js";\n',
                "a.js": "export let a = 1;\n",
            },
        )
        assert '"b": () => __m0.a' in out.code
        assert 'const __m0 = __require("a.js");' in out.code

    def test_destructuring_and_multiple_declarators(self, tmp_path: Path):
        out, diags = _bundle(
            tmp_path,
            {
                "main.js": 'import { x, y, a, c } from "./lib.js";\n',
                "lib.js": "export const x = 1, y = 2;\nexport const { a, b: [c] } = obj;\n",
            },
        )
        assert '__export(__exports, { "x": () => x, "y": () => y, "a": () => a, "c": () => c });' in out.code
        assert out.modules[0].exports == {"a", "c", "x", "y"}
        assert diags == []

    def test_export_without_declaration_is_rejected(self, tmp_path: Path):
        with pytest.raises(TransformError) as excinfo:
            _bundle(tmp_path, {"main.js": "const a = 1;\nexport a;\n"})
        assert "main.js" in str(excinfo.value)


# ---------------------------------------------------------------------------
# Non-JS modules
# ---------------------------------------------------------------------------


class TestNonJavaScriptModules:
    def test_json_module(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": 'import data from "./data.json" with { type: "json" };\n',
                "data.json": '{"a": 1}',
            },
        )
        assert 'const data = {"a": 1};' in out.code

    def test_invalid_json(self, tmp_path: Path):
        with pytest.raises(TransformError):
            _bundle(
                tmp_path,
                {"main.js": 'import data from "./data.json";\n', "data.json": "{nope"},
            )

    def test_closing_script_tag_is_escaped(self, tmp_path: Path):
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": 'import s from "./s.css";\n',
                "s.css": "/* </script> */ a { color: red; }\n",
            },
        )
        assert "</script" not in out.code
        assert "<\\/script>" in out.code

    def test_stylesheet_assets_are_inlined(self, tmp_path: Path):
        svg = b"<svg xmlns='http://www.w3.org/2000/svg'/>"
        (tmp_path / "img").mkdir()
        (tmp_path / "img" / "logo.svg").write_bytes(svg)
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": 'import s from "./style.css" assert { type: "css" };\n',
                "style.css": '.logo { background-image: url("img/logo.svg"); }\n',
            },
        )
        assert base64.b64encode(svg).decode() in out.code

    def test_missing_stylesheet_asset(self, tmp_path: Path):
        with pytest.raises(ReadError):
            _bundle(
                tmp_path,
                {
                    "main.js": 'import s from "./style.css";\n',
                    "style.css": ".a { background: url(nope.svg); }\n",
                },
            )

    def test_custom_transform_sees_every_module(self, tmp_path: Path):
        seen: list[str] = []

        class Recorder:
            def transform(self, source: str, path: Path) -> str | None:
                seen.append(path.name)
                return None

        _bundle(
            tmp_path,
            {"main.js": 'import "./a.js";\n', "a.js": "window.a = 1;\n"},
            transforms=[Recorder()],
        )
        assert seen == ["main.js", "a.js"]


# ---------------------------------------------------------------------------
# Diagnostics and failures
# ---------------------------------------------------------------------------


class TestDiagnostics:
    def test_circular_dependency_is_not_a_warning(self, tmp_path: Path, caplog):
        _write(
            tmp_path,
            {
                "main.js": 'import { b } from "./b.js";\nexport const a = 1;\n',
                "b.js": 'import { a } from "./main.js";\nexport const b = 2;\n',
            },
        )
        caplog.set_level(logging.DEBUG, logger="clientpack")
        out = ModuleBundler().bundle(tmp_path / "main.js")
        assert [d.code for d in out.diagnostics] == [CIRCULAR_DEPENDENCY]
        assert "main.js -> b.js -> main.js" in out.diagnostics[0].message
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert out.module_ids == ["b.js", "main.js"]

    def test_missing_export_is_logged_as_warning(self, tmp_path: Path, caplog):
        _write(
            tmp_path,
            {"main.js": 'import { nope } from "./lib.js";\n', "lib.js": "export const x = 1;\n"},
        )
        with caplog.at_level(logging.WARNING, logger="clientpack"):
            out = ModuleBundler().bundle(tmp_path / "main.js")
        assert [d.code for d in out.warnings] == [MISSING_EXPORT]
        assert any("MISSING_EXPORT" in r.getMessage() for r in caplog.records)

    def test_unknown_import_type(self, tmp_path: Path):
        _, diags = _bundle(
            tmp_path,
            {
                "main.js": 'import x from "./x.js" assert { type: "wasm" };\n',
                "x.js": "export default 1;\n",
            },
        )
        assert [d.code for d in diags] == [UNKNOWN_IMPORT_TYPE]

    def test_unresolvable_relative_import(self, tmp_path: Path):
        with pytest.raises(TransformError) as excinfo:
            _bundle(tmp_path, {"main.js": 'import "./missing.js";\n'})
        assert "missing.js" in str(excinfo.value)

    def test_bare_specifier_cannot_be_inlined(self, tmp_path: Path):
        with pytest.raises(TransformError):
            _bundle(tmp_path, {"main.js": 'import { html } from "lit";\n'})

    def test_missing_entry(self, tmp_path: Path):
        with pytest.raises(TransformError):
            ModuleBundler().bundle(tmp_path / "main.js")

    def test_malformed_statement(self, tmp_path: Path):
        with pytest.raises(TransformError):
            _bundle(tmp_path, {"main.js": 'import { a b } from "./a.js";\n', "a.js": ""})


# ---------------------------------------------------------------------------
# Running bundles
# ---------------------------------------------------------------------------


class TestBundleExecution:
    def _run(self, tmp_path: Path, run_js, files: dict[str, str], minify: bool = False):
        out, _ = _bundle(tmp_path, files)
        code = JSMinifier().minify(out.code) if minify else out.code
        return run_js(code)

    @pytest.mark.parametrize("minify", [False, True])
    def test_circular_imports_resolve(self, tmp_path: Path, run_js, minify):
        logs = self._run(
            tmp_path,
            run_js,
            {
                "main.js": 'import { b } from "./b.js";\nexport const a = 1;\nconsole.log(b());\n',
                "b.js": 'import { a } from "./main.js";\nexport function b() { return a + 1; }\n',
            },
            minify=minify,
        )
        assert logs == ["2"]

    @pytest.mark.parametrize("minify", [False, True])
    def test_bindings_are_live(self, tmp_path: Path, run_js, minify):
        logs = self._run(
            tmp_path,
            run_js,
            {
                "main.js": (
                    'import { count, inc } from "./counter.js";\n'
                    'import * as counter from "./counter.js";\n'
                    "inc();\n"
                    "console.log(count, counter.count);\n"
                ),
                "counter.js": "export let count = 0;\nexport function inc() { count++; }\n",
            },
            minify=minify,
        )
        assert logs == ["1 1"]

    def test_multiple_declarators_and_destructuring(self, tmp_path: Path, run_js):
        logs = self._run(
            tmp_path,
            run_js,
            {
                "main.js": 'import { x, y, a, c } from "./lib.js";\nconsole.log(x + y, a + c);\n',
                "lib.js": (
                    "const obj = { a: 5, b: [6] };\n"
                    "export const x = 1, y = 2;\n"
                    "export const { a, b: [c] } = obj;\n"
                ),
            },
        )
        assert logs == ["3 11"]

    @pytest.mark.parametrize("minify", [False, True])
    def test_reexports(self, tmp_path: Path, run_js, minify):
        logs = self._run(
            tmp_path,
            run_js,
            {
                "main.js": 'import { b, m, ns } from "./lib.js";\nconsole.log(b, m, ns.m);\n',
                "lib.js": (
                    'export { a as b } from "./a.js";\n'
                    'export * from "./more.js";\n'
                    'export * as ns from "./more.js";\n'
                ),
                "a.js": "export const a = 1;\n",
                "more.js": "export const m = 2;\n",
            },
            minify=minify,
        )
        assert logs == ["1 2 2"]

    def test_default_exports(self, tmp_path: Path, run_js):
        logs = self._run(
            tmp_path,
            run_js,
            {
                "main.js": (
                    'import f from "./f.js";\n'
                    'import W from "./w.js";\n'
                    'import n from "./n.js";\n'
                    "console.log(f(), new W().name, n);\n"
                ),
                "f.js": 'export default function () { return "anon"; }\n',
                "w.js": 'export default class Widget { constructor() { this.name = "w"; } }\n',
                "n.js": "export default 40 + 2;\n",
            },
        )
        assert logs == ["anon w 42"]

    def test_shadowed_names_are_left_alone(self, tmp_path: Path, run_js):
        files = {
            "main.js": (
                'import { value } from "./lib.js";\n'
                "function show(value) { return value; }\n"
                'const local = () => { const value = "local"; return value; };\n'
                "try { throw 3; } catch (value) { console.log(value); }\n"
                'console.log(show("param"), local(), value, JSON.stringify({ value }));\n'
            ),
            "lib.js": "export const value = 1;\n",
        }
        out, _ = _bundle(tmp_path, files)
        assert "function show(value) { return value; }" in out.code
        assert run_js(out.code) == ["3", 'param local 1 {"value":1}']

    def test_comments_and_templates_are_not_statements(self, tmp_path: Path, run_js):
        files = {
            "main.js": (
                '// import { gone } from "./missing.js";\n'
                '/* import "./also-missing.js"; */\n'
                "const text = `export const nope = ${1 + 1}`;\n"
                "console.log(text);\n"
            ),
        }
        out, _ = _bundle(tmp_path, files)
        assert out.module_ids == ["main.js"]
        assert run_js(out.code) == ["export const nope = 2"]

    def test_stylesheet_is_adopted(self, tmp_path: Path, run_js):
        out, _ = _bundle(
            tmp_path,
            {
                "main.js": (
                    'import sheet from "./style.css" assert { type: "css" };\n'
                    "document.adoptedStyleSheets = [sheet];\n"
                ),
                "style.css": "body { color: red; }\n",
            },
        )
        texts = run_js(out.code, "document.adoptedStyleSheets.map((s) => s.cssText)")
        assert len(texts) == 1
        assert "color: red" in texts[0]
