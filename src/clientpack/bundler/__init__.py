from clientpack.bundler.bundler import ModuleBundler, log_diagnostic
from clientpack.bundler.statements import (
    ExportBinding,
    ExportStatement,
    ImportBinding,
    ImportStatement,
    parse_statement,
)

__all__ = [
    "ExportBinding",
    "ExportStatement",
    "ImportBinding",
    "ImportStatement",
    "ModuleBundler",
    "log_diagnostic",
    "parse_statement",
]
