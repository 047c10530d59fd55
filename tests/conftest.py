from __future__ import annotations

import json
from pathlib import Path

import pytest

SVG = b"<svg xmlns='http://www.w3.org/2000/svg' width='1' height='1'/>"

SHELL = """\
<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Device</title>
    <script type="module" src="./main.js"></script>
  </head>
  <body>
    <h1 class="title">Settings</h1>
    <!--inline main.js inject position-->
  </body>
</html>
"""

MAIN_JS = """\
import sheet from "./style.css" assert { type: "css" };
import { render } from "./render.js";

document.adoptedStyleSheets = [sheet];
render(document.body, "Brightness");
"""

RENDER_JS = """\
export function render(root, label) {
  const item = document.createElement("div");
  item.textContent = label;
  root.appendChild(item);
}
"""

STYLE_CSS = """\
.title {
  background-image: url("img/logo.svg");
  color: #333;
}
"""


@pytest.fixture
def client_project(tmp_path: Path) -> Path:
    """A web client laid out the way ``clientpack build`` expects by default."""
    root = tmp_path / "Website"
    src = root / "src"
    (src / "img").mkdir(parents=True)
    (src / "index.html").write_text(SHELL, encoding="utf-8")
    (src / "main.js").write_text(MAIN_JS, encoding="utf-8")
    (src / "render.js").write_text(RENDER_JS, encoding="utf-8")
    (src / "style.css").write_text(STYLE_CSS, encoding="utf-8")
    (src / "img" / "logo.svg").write_bytes(SVG)
    return root


# Just enough of a browser for bundled scripts to run.
BROWSER_SHIM = """\
globalThis.__log = [];
globalThis.console = { log: (...args) => __log.push(args.join(" ")) };
globalThis.CSSStyleSheet = class {
  replaceSync(text) { this.cssText = text; }
};
class Element {
  constructor(tag) { this.tagName = tag; this.children = []; this.textContent = ""; }
  appendChild(child) { this.children.push(child); return child; }
}
globalThis.document = {
  adoptedStyleSheets: [],
  body: new Element("body"),
  createElement: (tag) => new Element(tag),
};
"""


@pytest.fixture
def run_js():
    """Run *code* in a fresh V8 context and return the JSON value of *expression*."""
    from py_mini_racer import MiniRacer

    def _run(code: str, expression: str = "__log"):
        ctx = MiniRacer()
        ctx.eval(BROWSER_SHIM)
        ctx.eval(code)
        return json.loads(ctx.eval(f"JSON.stringify({expression})"))

    return _run
