"""Concrete syntax tree types.

Every node records the inclusive span of stream indices it covers, so the
original text of any subtree, trivia included, is ``tokens.text(node.start,
node.stop)``.  Nodes hold main-channel tokens as children; hidden tokens are
reachable only through spans.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from rewrite_engine.tokens import Token, TokenStream


class NodeKind(str, enum.Enum):
    """Closed set of grammar productions the parser emits."""

    # Statements
    SINGLE_STATEMENT = "single_statement"
    QUERY = "query"
    CTE = "cte"
    SET_OPERATION = "set_operation"
    QUERY_SPECIFICATION = "query_specification"
    SELECT_ITEM = "select_item"
    FROM_CLAUSE = "from_clause"
    TABLE_REFERENCE = "table_reference"
    SUBQUERY_RELATION = "subquery_relation"
    PARENTHESIZED_QUERY = "parenthesized_query"
    JOIN = "join"
    LATERAL_VIEW = "lateral_view"
    WHERE_CLAUSE = "where_clause"
    GROUP_BY_CLAUSE = "group_by_clause"
    HAVING_CLAUSE = "having_clause"
    QUERY_ORGANIZATION = "query_organization"
    ORDER_BY_CLAUSE = "order_by_clause"
    CLUSTER_BY_CLAUSE = "cluster_by_clause"
    DISTRIBUTE_BY_CLAUSE = "distribute_by_clause"
    SORT_BY_CLAUSE = "sort_by_clause"
    LIMIT_CLAUSE = "limit_clause"
    SORT_ITEM = "sort_item"
    CREATE_TABLE = "create_table"
    COLUMN_DEFINITION = "column_definition"
    INSERT_STATEMENT = "insert_statement"
    PARTITION_SPEC = "partition_spec"
    TABLE_PROPERTY = "table_property"

    # Types
    PRIMITIVE_TYPE = "primitive_type"
    COMPLEX_TYPE = "complex_type"
    STRUCT_FIELD = "struct_field"

    # Expressions
    LOGICAL_BINARY = "logical_binary"
    LOGICAL_NOT = "logical_not"
    EXISTS = "exists"
    COMPARISON = "comparison"
    PREDICATE = "predicate"
    ARITHMETIC_BINARY = "arithmetic_binary"
    ARITHMETIC_UNARY = "arithmetic_unary"
    FUNCTION_CALL = "function_call"
    WINDOW_SPEC = "window_spec"
    WINDOW_FRAME = "window_frame"
    FRAME_BOUND = "frame_bound"
    CAST = "cast"
    CASE_EXPRESSION = "case_expression"
    WHEN_CLAUSE = "when_clause"
    PARENTHESIZED = "parenthesized"
    SUBQUERY_EXPRESSION = "subquery_expression"
    COLUMN_REFERENCE = "column_reference"
    DEREFERENCE = "dereference"
    SUBSCRIPT = "subscript"
    STAR = "star"
    NUMERIC_LITERAL = "numeric_literal"
    STRING_LITERAL = "string_literal"
    BOOLEAN_LITERAL = "boolean_literal"
    NULL_LITERAL = "null_literal"
    INTERVAL_LITERAL = "interval_literal"

    # Names
    QUALIFIED_NAME = "qualified_name"
    QUOTED_IDENTIFIER = "quoted_identifier"
    UNQUOTED_IDENTIFIER = "unquoted_identifier"


Child = Union["SyntaxNode", Token]


@dataclass(frozen=True, slots=True)
class SyntaxNode:
    """An immutable node of the concrete syntax tree.

    ``fields`` holds labelled children (``"left"``, ``"operator"``,
    ``"column_aliases"`` ...) for typed access; it is excluded from
    equality and hashing.
    """

    kind: NodeKind
    children: tuple[Child, ...]
    start: int
    stop: int
    fields: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False, hash=False)

    # -- labelled access ------------------------------------------------------

    def get(self, name: str) -> Any:
        """Return the labelled child *name*, or ``None``.

        For list-valued labels the first element is returned.
        """
        value = self.fields.get(name)
        if isinstance(value, tuple):
            return value[0] if value else None
        return value

    def get_all(self, name: str) -> tuple[Any, ...]:
        """Return a list-valued label as a tuple (empty if absent)."""
        value = self.fields.get(name)
        if value is None:
            return ()
        if isinstance(value, tuple):
            return value
        return (value,)

    def has(self, name: str) -> bool:
        return bool(self.get_all(name))

    # -- traversal helpers ----------------------------------------------------

    def child_nodes(self) -> Iterator[SyntaxNode]:
        for child in self.children:
            if isinstance(child, SyntaxNode):
                yield child

    def child_tokens(self) -> Iterator[Token]:
        for child in self.children:
            if isinstance(child, Token):
                yield child

    def walk(self) -> Iterator[SyntaxNode]:
        """Yield this node and every descendant node, pre-order."""
        yield self
        for child in self.child_nodes():
            yield from child.walk()

    def find(self, kind: NodeKind) -> SyntaxNode | None:
        """Return the first descendant (or self) of *kind*, pre-order."""
        for node in self.walk():
            if node.kind is kind:
                return node
        return None

    def find_all(self, kind: NodeKind) -> list[SyntaxNode]:
        return [node for node in self.walk() if node.kind is kind]

    def text(self, tokens: TokenStream) -> str:
        """Original source text of this node, trivia included."""
        return tokens.text(self.start, self.stop)

    def compact_text(self) -> str:
        """Text of the main-channel tokens only, without separators."""
        parts: list[str] = []
        for child in self.children:
            parts.append(child.text if isinstance(child, Token) else child.compact_text())
        return "".join(parts)
