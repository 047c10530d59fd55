"""Scope analysis of module bodies with tree-sitter.

The bundler rewrites every reference to an imported binding into a member
read on the exporting module's record, which keeps ES live-binding
semantics. This module finds those references: identifiers that name an
import and are not shadowed by a declaration in an enclosing function,
block or catch clause.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

from clientpack.errors import TransformError

logger = logging.getLogger(__name__)

JAVASCRIPT = Language(tree_sitter_javascript.language())

# Reference roles.
PLAIN = "plain"
CALLEE = "callee"
SHORTHAND = "shorthand"

_FUNCTIONS = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)
_NAMED_FUNCTION_EXPRESSIONS = frozenset({"function_expression", "function", "generator_function"})
_BLOCK_DECLARATIONS = frozenset(
    {"class_declaration", "function_declaration", "generator_function_declaration"}
)
TOP_LEVEL_DECLARATIONS = frozenset(
    {"lexical_declaration", "variable_declaration"} | _BLOCK_DECLARATIONS
)


@dataclass(frozen=True)
class Reference:
    """A use of an imported name; offsets are character offsets."""

    name: str
    start: int
    end: int
    role: str = PLAIN


@lru_cache(maxsize=1)
def _parser() -> Parser:
    return Parser(JAVASCRIPT)


class ModuleTree:
    """A parsed module body plus byte/character offset bookkeeping."""

    def __init__(self, text: str, module_id: str = "") -> None:
        self.text = text
        self.data = text.encode("utf-8")
        self.tree: Tree = _parser().parse(self.data)
        self._chars: dict[int, int] | None = None
        if self.tree.root_node.has_error:
            node = _first_error(self.tree.root_node)
            line = node.start_point[0] + 1 if node is not None else "?"
            name = module_id or "<module>"
            raise TransformError(f"{name}: syntax error on line {line}", source=module_id)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def char_offset(self, byte_offset: int) -> int:
        if self.text.isascii():
            return byte_offset
        if self._chars is None:
            self._chars = {}
            position = 0
            for index, ch in enumerate(self.text):
                self._chars[position] = index
                position += len(ch.encode("utf-8"))
            self._chars[position] = len(self.text)
        return self._chars[byte_offset]

    def node_text(self, node: Node) -> str:
        return self.data[node.start_byte : node.end_byte].decode("utf-8")

    def top_level_at(self, offset: int) -> Node | None:
        """The top-level statement starting at character *offset*."""
        for node in self.root.named_children:
            if self.char_offset(node.start_byte) == offset:
                return node
        return None

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def pattern_names(self, node: Node | None) -> set[str]:
        """Names bound by a binding pattern (identifier, object or array pattern)."""
        names: set[str] = set()
        stack = [node] if node is not None else []
        while stack:
            current = stack.pop()
            kind = current.type
            if kind in ("identifier", "shorthand_property_identifier_pattern"):
                names.add(self.node_text(current))
            elif kind == "pair_pattern":
                stack.append(current.child_by_field_name("value"))
            elif kind in ("assignment_pattern", "object_assignment_pattern"):
                stack.append(current.child_by_field_name("left"))
            elif kind in ("object_pattern", "array_pattern", "rest_pattern", "formal_parameters"):
                stack.extend(current.named_children)
            stack = [n for n in stack if n is not None]
        return names

    def declared_names(self, node: Node) -> set[str]:
        """Names a top-level or block-level declaration introduces."""
        if node.type in ("lexical_declaration", "variable_declaration"):
            names: set[str] = set()
            for declarator in node.named_children:
                if declarator.type == "variable_declarator":
                    names |= self.pattern_names(declarator.child_by_field_name("name"))
            return names
        if node.type in _BLOCK_DECLARATIONS:
            name = node.child_by_field_name("name")
            return {self.node_text(name)} if name is not None else set()
        return set()

    def _lexical_names(self, block: Node) -> set[str]:
        statements = block.named_children
        if block.type == "switch_body":
            statements = [s for case in block.named_children for s in case.named_children]
        names: set[str] = set()
        for statement in statements:
            if statement.type == "lexical_declaration" or statement.type in _BLOCK_DECLARATIONS:
                names |= self.declared_names(statement)
        return names

    def _var_names(self, body: Node) -> set[str]:
        names: set[str] = set()
        stack = list(body.named_children)
        while stack:
            node = stack.pop()
            if node.type in _FUNCTIONS:
                continue
            if node.type == "variable_declaration":
                names |= self.declared_names(node)
            elif node.type == "for_in_statement":
                kind = node.child_by_field_name("kind")
                if kind is not None and self.node_text(kind) == "var":
                    names |= self.pattern_names(node.child_by_field_name("left"))
            stack.extend(node.named_children)
        return names

    def scope_names(self, node: Node) -> set[str]:
        """Names declared by *node* for its own subtree, if it opens a scope."""
        kind = node.type
        if kind in _FUNCTIONS:
            names = self.pattern_names(node.child_by_field_name("parameters"))
            names |= self.pattern_names(node.child_by_field_name("parameter"))
            if kind in _NAMED_FUNCTION_EXPRESSIONS:
                names |= self.pattern_names(node.child_by_field_name("name"))
            body = node.child_by_field_name("body")
            if body is not None and body.type == "statement_block":
                names |= self._var_names(body) | self._lexical_names(body)
            return names
        if kind in ("statement_block", "switch_body", "class_static_block"):
            return self._lexical_names(node)
        if kind == "for_statement":
            initializer = node.child_by_field_name("initializer")
            if initializer is not None and initializer.type == "lexical_declaration":
                return self.declared_names(initializer)
        elif kind == "for_in_statement":
            if node.child_by_field_name("kind") is not None:
                return self.pattern_names(node.child_by_field_name("left"))
        elif kind == "catch_clause":
            return self.pattern_names(node.child_by_field_name("parameter"))
        return set()

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def references(self, names: set[str] | frozenset[str]) -> list[Reference]:
        """Every unshadowed use of *names* in source order."""
        if not names:
            return []
        found: list[Reference] = []
        stack: list[tuple[Node, frozenset[str]]] = [(self.root, frozenset())]
        while stack:
            node, shadowed = stack.pop()
            if node.type != "program":
                declared = self.scope_names(node) & names
                if declared:
                    shadowed = shadowed | declared

            if node.type in ("identifier", "shorthand_property_identifier"):
                name = self.node_text(node)
                if name in names and name not in shadowed:
                    found.append(
                        Reference(
                            name=name,
                            start=self.char_offset(node.start_byte),
                            end=self.char_offset(node.end_byte),
                            role=self._role(node),
                        )
                    )
                continue
            stack.extend((child, shadowed) for child in node.named_children)

        found.sort(key=lambda ref: ref.start)
        logger.debug("Found %d reference(s) to %d imported name(s)", len(found), len(names))
        return found

    @staticmethod
    def _role(node: Node) -> str:
        if node.type == "shorthand_property_identifier":
            return SHORTHAND
        parent = node.parent
        if parent is not None and parent.type == "call_expression":
            callee = parent.child_by_field_name("function")
            if callee is not None and callee.start_byte == node.start_byte and callee.end_byte == node.end_byte:
                return CALLEE
        return PLAIN


def _first_error(root: Node) -> Node | None:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None
