"""JavaScript runtime wrapped around bundled modules."""

from __future__ import annotations

import json
import re

PRELUDE = """\
(() => {
const __modules = {};
const __cache = {};
const __require = (id) => {
  if (!(id in __cache)) {
    const __exports = (__cache[id] = {});
    __modules[id](__exports);
  }
  return __cache[id];
};
const __export = (target, getters) => {
  for (const name in getters) {
    Object.defineProperty(target, name, { enumerable: true, get: getters[name] });
  }
};
const __exportStar = (target, source) => {
  for (const name in source) {
    if (name !== "default" && !(name in target)) {
      Object.defineProperty(target, name, { enumerable: true, get: () => source[name] });
    }
  }
};
"""

EPILOGUE = """\
__require({entry});
}})();
"""


def js_string(text: str) -> str:
    """Return *text* as a JavaScript string literal safe inside an inline ``<script>``."""
    return json.dumps(text).replace("</", "<\\/")


def require(module_id: str) -> str:
    return f"__require({js_string(module_id)})"


_IDENTIFIER_RE = re.compile(r"[A-Za-z_$][\w$]*\Z", re.ASCII)


def member(record: str, name: str) -> str:
    """Property read of export *name* on a module record."""
    if _IDENTIFIER_RE.match(name):
        return f"{record}.{name}"
    return f"{record}[{js_string(name)}]"


def export_getters(getters: dict[str, str]) -> str:
    """``__export`` call exposing each ``exported -> local expression`` pair."""
    if not getters:
        return ""
    pairs = ", ".join(f"{js_string(name)}: () => {local}" for name, local in getters.items())
    return f"__export(__exports, {{ {pairs} }});\n"


def define(module_id: str, body: str) -> str:
    return f"__modules[{js_string(module_id)}] = (__exports) => {{\n{body.rstrip()}\n}};\n"


def epilogue(entry_id: str) -> str:
    return EPILOGUE.format(entry=js_string(entry_id))
