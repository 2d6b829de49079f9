"""Hive grammar -- recursive-descent parser producing a concrete syntax tree.

Consumes the main channel of a :class:`TokenStream` and produces a tree
rooted at a ``SINGLE_STATEMENT`` node.  Node spans are stream indices, so
hidden tokens (whitespace, comments) between two main tokens stay inside the
span of every node that covers both.

Keywords are matched case-insensitively.  Words in :data:`RESERVED_WORDS`
cannot be used as bare aliases or column names; any word may follow a dot
and any word may name a function when directly followed by ``(``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from rewrite_engine.errors import SqlParseError
from rewrite_engine.syntax import NodeKind, SyntaxNode
from rewrite_engine.tokens import Token, TokenStream, TokenType

logger = logging.getLogger(__name__)

RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "ALL", "AND", "ANTI", "AS", "ASC", "BETWEEN", "BY", "CASE", "CAST",
        "CLUSTER", "CREATE", "CROSS", "DESC", "DISTINCT", "DISTRIBUTE", "DIV",
        "ELSE", "END", "EXCEPT", "EXISTS", "FALSE", "FROM", "FULL", "GROUP",
        "HAVING", "IN", "INNER", "INSERT", "INTERSECT", "INTERVAL", "IS",
        "JOIN", "LATERAL", "LEFT", "LIKE", "LIMIT", "MINUS", "NOT", "NULL",
        "ON", "OR", "ORDER", "OUTER", "OVER", "PARTITION", "REGEXP", "RIGHT",
        "RLIKE", "SELECT", "SEMI", "SORT", "TABLE", "THEN", "TRUE", "UNION",
        "USING", "WHEN", "WHERE", "WINDOW", "WITH",
    }
)  # fmt: skip

_COMPARISON_OPERATORS = ("=", "==", "<>", "!=", "<", "<=", ">", ">=", "<=>")
_JOIN_WORDS = ("JOIN", "INNER", "CROSS", "LEFT", "RIGHT", "FULL")
_JOIN_MODIFIERS = ("INNER", "CROSS", "LEFT", "RIGHT", "FULL", "OUTER", "SEMI", "ANTI")
_SET_OPERATORS = ("UNION", "INTERSECT", "EXCEPT", "MINUS")
_COMPLEX_TYPES = ("ARRAY", "MAP", "STRUCT", "UNIONTYPE")


class HiveParser:
    """Recursive-descent parser for the supported Hive statement subset.

    Parameters
    ----------
    tokens:
        A lossless token stream from :func:`rewrite_engine.lexer.tokenize`.
    """

    def __init__(self, tokens: TokenStream) -> None:
        self._stream = tokens
        self._tokens = tokens.main_tokens()
        self._pos = 0

    # -- Navigation helpers ---------------------------------------------------

    def _current(self) -> Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _peek(self, offset: int = 1) -> Token | None:
        idx = self._pos + offset
        return self._tokens[idx] if idx < len(self._tokens) else None

    @staticmethod
    def _is_word(token: Token | None, *words: str) -> bool:
        return (
            token is not None
            and token.type is TokenType.WORD
            and (not words or token.text.upper() in words)
        )

    @staticmethod
    def _is_symbol(token: Token | None, *symbols: str) -> bool:
        return token is not None and token.type is TokenType.SYMBOL and token.text in symbols

    def _at(self, *words: str) -> bool:
        return self._is_word(self._current(), *words)

    def _at_pair(self, first: str, second: str) -> bool:
        return self._at(first) and self._is_word(self._peek(), second)

    def _at_symbol(self, *symbols: str) -> bool:
        return self._is_symbol(self._current(), *symbols)

    def _at_identifier(self, token: Token | None = None, *, allow_reserved: bool = False) -> bool:
        token = self._current() if token is None else token
        if token is None:
            return False
        if token.type is TokenType.QUOTED_IDENTIFIER:
            return True
        return token.type is TokenType.WORD and (allow_reserved or token.text.upper() not in RESERVED_WORDS)

    def _at_query_start(self, token: Token | None) -> bool:
        return self._is_word(token, "SELECT", "WITH")

    def _advance(self) -> Token:
        token = self._current()
        if token is None:
            raise self._error("Unexpected end of input")
        self._pos += 1
        return token

    def _accept(self, *words: str) -> Token | None:
        return self._advance() if self._at(*words) else None

    def _accept_symbol(self, *symbols: str) -> Token | None:
        return self._advance() if self._at_symbol(*symbols) else None

    def _expect(self, word: str) -> Token:
        if not self._at(word):
            raise self._error(f"Expected {word}")
        return self._advance()

    def _expect_symbol(self, symbol: str) -> Token:
        if not self._at_symbol(symbol):
            raise self._error(f"Expected {symbol!r}")
        return self._advance()

    def _error(self, message: str) -> SqlParseError:
        token = self._current()
        if token is None:
            return SqlParseError(f"{message} at end of input", -1)
        return SqlParseError(f"{message} but found {token.text!r} (token {token.index})", token.index)

    def _node(self, kind: NodeKind, start: Token | SyntaxNode, children: list[Any], **fields: Any) -> SyntaxNode:
        first = start.index if isinstance(start, Token) else start.start
        last = self._tokens[self._pos - 1].index
        return SyntaxNode(
            kind=kind,
            children=tuple(c for c in children if c is not None),
            start=first,
            stop=last,
            fields=fields,
        )

    def _comma_list(self, parse_item: Callable[[], SyntaxNode], children: list[Any]) -> tuple[SyntaxNode, ...]:
        items = [parse_item()]
        children.append(items[0])
        while comma := self._accept_symbol(","):
            children.append(comma)
            item = parse_item()
            items.append(item)
            children.append(item)
        return tuple(items)

    # -- Statements -----------------------------------------------------------

    def parse_statement(self) -> SyntaxNode:
        """Parse a single statement followed by an optional ``;``."""
        first = self._current()
        if first is None:
            raise self._error("Empty statement")

        if self._at("CREATE"):
            body = self._create_table()
        elif self._at("INSERT"):
            body = self._insert()
        else:
            body = self._query()

        semicolon = self._accept_symbol(";")
        if self._current() is not None:
            raise self._error("Unexpected token after statement")
        return self._node(NodeKind.SINGLE_STATEMENT, first, [body, semicolon], statement=body)

    def _query(self) -> SyntaxNode:
        start = self._current()
        if start is None:
            raise self._error("Expected query")
        children: list[Any] = []
        ctes: tuple[SyntaxNode, ...] = ()
        if with_kw := self._accept("WITH"):
            children.append(with_kw)
            ctes = self._comma_list(self._cte, children)

        body = self._query_term()
        children.append(body)
        organization = self._query_organization()
        children.append(organization)
        return self._node(NodeKind.QUERY, start, children, ctes=ctes, body=body, organization=organization)

    def _cte(self) -> SyntaxNode:
        name = self._identifier()
        as_kw = self._expect("AS")
        lparen = self._expect_symbol("(")
        query = self._query()
        rparen = self._expect_symbol(")")
        return self._node(NodeKind.CTE, name, [name, as_kw, lparen, query, rparen], name=name, query=query)

    def _query_term(self) -> SyntaxNode:
        left = self._query_primary()
        while self._at(*_SET_OPERATORS):
            operator = self._advance()
            quantifier = self._accept("ALL", "DISTINCT")
            right = self._query_primary()
            left = self._node(
                NodeKind.SET_OPERATION,
                left,
                [left, operator, quantifier, right],
                left=left,
                operator=operator,
                quantifier=quantifier,
                right=right,
            )
        return left

    def _query_primary(self) -> SyntaxNode:
        if self._at("SELECT"):
            return self._query_specification()
        if self._at_symbol("("):
            lparen = self._advance()
            query = self._query()
            rparen = self._expect_symbol(")")
            return self._node(NodeKind.PARENTHESIZED_QUERY, lparen, [lparen, query, rparen], query=query)
        raise self._error("Expected SELECT")

    def _query_specification(self) -> SyntaxNode:
        select_kw = self._expect("SELECT")
        children: list[Any] = [select_kw]
        quantifier = self._accept("ALL", "DISTINCT")
        children.append(quantifier)
        items = self._comma_list(self._select_item, children)

        from_clause = self._from_clause() if self._at("FROM") else None
        children.append(from_clause)

        where = None
        if where_kw := self._accept("WHERE"):
            condition = self._expression()
            where = self._node(NodeKind.WHERE_CLAUSE, where_kw, [where_kw, condition], condition=condition)
        children.append(where)

        group_by = None
        if self._at_pair("GROUP", "BY"):
            group_kw, by_kw = self._advance(), self._advance()
            group_children: list[Any] = [group_kw, by_kw]
            expressions = self._comma_list(self._expression, group_children)
            group_by = self._node(NodeKind.GROUP_BY_CLAUSE, group_kw, group_children, expressions=expressions)
        children.append(group_by)

        having = None
        if having_kw := self._accept("HAVING"):
            condition = self._expression()
            having = self._node(NodeKind.HAVING_CLAUSE, having_kw, [having_kw, condition], condition=condition)
        children.append(having)

        return self._node(
            NodeKind.QUERY_SPECIFICATION,
            select_kw,
            children,
            quantifier=quantifier,
            select_items=items,
            from_clause=from_clause,
            where=where,
            group_by=group_by,
            having=having,
        )

    def _select_item(self) -> SyntaxNode:
        start = self._current()
        if start is None:
            raise self._error("Expected select item")
        if self._at_symbol("*"):
            star = self._advance()
            expression = self._node(NodeKind.STAR, star, [star], qualifier=None)
            return self._node(NodeKind.SELECT_ITEM, start, [expression], expression=expression, alias=None)

        expression = self._expression()
        as_kw, alias = self._optional_alias()
        return self._node(
            NodeKind.SELECT_ITEM,
            start,
            [expression, as_kw, alias],
            expression=expression,
            as_keyword=as_kw,
            alias=alias,
        )

    def _optional_alias(self) -> tuple[Token | None, SyntaxNode | None]:
        if as_kw := self._accept("AS"):
            return as_kw, self._identifier(allow_reserved=True)
        if self._at_identifier():
            return None, self._identifier()
        return None, None

    # -- FROM clause ----------------------------------------------------------

    def _from_clause(self) -> SyntaxNode:
        from_kw = self._expect("FROM")
        children: list[Any] = [from_kw]
        relations = self._comma_list(self._relation, children)
        lateral_views: list[SyntaxNode] = []
        while self._at_pair("LATERAL", "VIEW"):
            view = self._lateral_view()
            lateral_views.append(view)
            children.append(view)
        return self._node(
            NodeKind.FROM_CLAUSE,
            from_kw,
            children,
            relations=relations,
            lateral_views=tuple(lateral_views),
        )

    def _relation(self) -> SyntaxNode:
        relation = self._relation_primary()
        while self._at(*_JOIN_WORDS):
            relation = self._join(relation)
        return relation

    def _join(self, left: SyntaxNode) -> SyntaxNode:
        children: list[Any] = [left]
        join_type: list[Token] = []
        while self._at(*_JOIN_MODIFIERS):
            join_type.append(self._advance())
        children.extend(join_type)
        join_kw = self._expect("JOIN")
        children.append(join_kw)
        right = self._relation_primary()
        children.append(right)

        condition = None
        using: tuple[SyntaxNode, ...] = ()
        if on_kw := self._accept("ON"):
            condition = self._expression()
            children.extend([on_kw, condition])
        elif using_kw := self._accept("USING"):
            children.extend([using_kw, self._expect_symbol("(")])
            using = self._comma_list(self._identifier, children)
            children.append(self._expect_symbol(")"))

        return self._node(
            NodeKind.JOIN,
            left,
            children,
            left=left,
            join_type=tuple(join_type),
            right=right,
            condition=condition,
            using=using,
        )

    def _relation_primary(self) -> SyntaxNode:
        start = self._current()
        if start is None:
            raise self._error("Expected relation")
        if self._at_symbol("("):
            lparen = self._advance()
            query = self._query()
            rparen = self._expect_symbol(")")
            as_kw, alias = self._optional_alias()
            return self._node(
                NodeKind.SUBQUERY_RELATION,
                lparen,
                [lparen, query, rparen, as_kw, alias],
                query=query,
                as_keyword=as_kw,
                alias=alias,
            )

        name = self._qualified_name()
        as_kw, alias = self._optional_alias()
        return self._node(
            NodeKind.TABLE_REFERENCE,
            start,
            [name, as_kw, alias],
            name=name,
            as_keyword=as_kw,
            alias=alias,
        )

    def _lateral_view(self) -> SyntaxNode:
        lateral_kw = self._expect("LATERAL")
        view_kw = self._expect("VIEW")
        children: list[Any] = [lateral_kw, view_kw]
        outer = self._accept("OUTER")
        children.append(outer)

        udtf = self._qualified_name()
        lparen = self._expect_symbol("(")
        children.extend([udtf, lparen])
        arguments: tuple[SyntaxNode, ...] = ()
        if not self._at_symbol(")"):
            arguments = self._comma_list(self._expression, children)
        rparen = self._expect_symbol(")")
        children.append(rparen)

        table_alias = self._identifier()
        children.append(table_alias)
        as_kw = self._accept("AS")
        children.append(as_kw)
        column_aliases: tuple[SyntaxNode, ...] = ()
        if as_kw is not None or self._at_identifier():
            column_aliases = self._comma_list(lambda: self._identifier(allow_reserved=as_kw is not None), children)

        return self._node(
            NodeKind.LATERAL_VIEW,
            lateral_kw,
            children,
            outer=outer,
            udtf=udtf,
            lparen=lparen,
            arguments=arguments,
            rparen=rparen,
            table_alias=table_alias,
            as_keyword=as_kw,
            column_aliases=column_aliases,
        )

    # -- Query organization ---------------------------------------------------

    def _query_organization(self) -> SyntaxNode | None:
        start = self._current()
        children: list[Any] = []
        clauses: dict[str, SyntaxNode] = {}

        while True:
            if self._at_pair("ORDER", "BY"):
                label, kind, item = "order_by", NodeKind.ORDER_BY_CLAUSE, self._sort_item
            elif self._at_pair("CLUSTER", "BY"):
                label, kind, item = "cluster_by", NodeKind.CLUSTER_BY_CLAUSE, self._expression
            elif self._at_pair("DISTRIBUTE", "BY"):
                label, kind, item = "distribute_by", NodeKind.DISTRIBUTE_BY_CLAUSE, self._expression
            elif self._at_pair("SORT", "BY"):
                label, kind, item = "sort_by", NodeKind.SORT_BY_CLAUSE, self._sort_item
            elif self._at("LIMIT"):
                if "limit" in clauses:
                    raise self._error("Duplicate LIMIT clause")
                limit_kw = self._advance()
                value = self._expression()
                clauses["limit"] = self._node(NodeKind.LIMIT_CLAUSE, limit_kw, [limit_kw, value], value=value)
                children.append(clauses["limit"])
                continue
            else:
                break

            if label in clauses:
                raise self._error(f"Duplicate {label.replace('_', ' ').upper()} clause")
            keyword, by_kw = self._advance(), self._advance()
            clause_children: list[Any] = [keyword, by_kw]
            items = self._comma_list(item, clause_children)
            clauses[label] = self._node(kind, keyword, clause_children, keyword=keyword, by=by_kw, items=items)
            children.append(clauses[label])

        if not children or start is None:
            return None
        return self._node(NodeKind.QUERY_ORGANIZATION, start, children, **clauses)

    def _sort_item(self) -> SyntaxNode:
        expression = self._expression()
        children: list[Any] = [expression]
        ordering = self._accept("ASC", "DESC")
        children.append(ordering)
        null_ordering = None
        if self._is_word(self._current(), "NULLS") and self._is_word(self._peek(), "FIRST", "LAST"):
            nulls_kw = self._advance()
            null_ordering = self._advance()
            children.extend([nulls_kw, null_ordering])
        return self._node(
            NodeKind.SORT_ITEM,
            expression,
            children,
            expression=expression,
            ordering=ordering,
            null_ordering=null_ordering,
        )

    # -- DDL / DML --------------------------------------------------------------

    def _create_table(self) -> SyntaxNode:
        create_kw = self._expect("CREATE")
        children: list[Any] = [create_kw]
        for modifier in ("TEMPORARY", "EXTERNAL"):
            children.append(self._accept(modifier))
        children.append(self._expect("TABLE"))
        if self._at("IF"):
            children.extend([self._advance(), self._expect("NOT"), self._expect("EXISTS")])

        name = self._qualified_name()
        children.append(name)

        columns: tuple[SyntaxNode, ...] = ()
        if self._at_symbol("("):
            children.append(self._advance())
            columns = self._comma_list(self._column_definition, children)
            children.append(self._expect_symbol(")"))

        partition_columns: tuple[SyntaxNode, ...] = ()
        properties: tuple[SyntaxNode, ...] = ()
        query = None
        while True:
            if comment_kw := self._accept("COMMENT"):
                children.extend([comment_kw, self._string_literal()])
            elif self._at_pair("PARTITIONED", "BY"):
                children.extend([self._advance(), self._advance(), self._expect_symbol("(")])
                partition_columns = self._comma_list(self._column_definition, children)
                children.append(self._expect_symbol(")"))
            elif self._at_pair("STORED", "AS"):
                children.extend([self._advance(), self._advance(), self._identifier(allow_reserved=True)])
            elif location_kw := self._accept("LOCATION"):
                children.extend([location_kw, self._string_literal()])
            elif properties_kw := self._accept("TBLPROPERTIES"):
                children.extend([properties_kw, self._expect_symbol("(")])
                properties = self._comma_list(self._table_property, children)
                children.append(self._expect_symbol(")"))
            elif as_kw := self._accept("AS"):
                query = self._query()
                children.extend([as_kw, query])
                break
            else:
                break

        return self._node(
            NodeKind.CREATE_TABLE,
            create_kw,
            children,
            name=name,
            columns=columns,
            partition_columns=partition_columns,
            properties=properties,
            query=query,
        )

    def _column_definition(self) -> SyntaxNode:
        name = self._identifier(allow_reserved=True)
        data_type = self._data_type()
        children: list[Any] = [name, data_type]
        comment = None
        if comment_kw := self._accept("COMMENT"):
            comment = self._string_literal()
            children.extend([comment_kw, comment])
        return self._node(
            NodeKind.COLUMN_DEFINITION,
            name,
            children,
            name=name,
            data_type=data_type,
            comment=comment,
        )

    def _table_property(self) -> SyntaxNode:
        key = self._string_literal()
        eq = self._expect_symbol("=")
        value = self._string_literal()
        return self._node(NodeKind.TABLE_PROPERTY, key, [key, eq, value], key=key, value=value)

    def _insert(self) -> SyntaxNode:
        insert_kw = self._expect("INSERT")
        children: list[Any] = [insert_kw]
        if not self._at("INTO", "OVERWRITE"):
            raise self._error("Expected INTO or OVERWRITE")
        mode = self._advance()
        children.extend([mode, self._accept("TABLE")])
        target = self._qualified_name()
        children.append(target)

        partition = None
        if partition_kw := self._accept("PARTITION"):
            part_children: list[Any] = [partition_kw, self._expect_symbol("(")]
            self._comma_list(self._partition_value, part_children)
            part_children.append(self._expect_symbol(")"))
            partition = self._node(NodeKind.PARTITION_SPEC, partition_kw, part_children)
            children.append(partition)

        query = self._query()
        children.append(query)
        return self._node(
            NodeKind.INSERT_STATEMENT,
            insert_kw,
            children,
            mode=mode,
            target=target,
            partition=partition,
            query=query,
        )

    def _partition_value(self) -> SyntaxNode:
        # Hive allows dynamic partition columns without a value.
        column = self._identifier(allow_reserved=True)
        if eq := self._accept_symbol("="):
            value = self._expression()
            return self._node(NodeKind.COMPARISON, column, [column, eq, value], left=column, operator=eq, right=value)
        return column

    # -- Types ------------------------------------------------------------------

    def _data_type(self) -> SyntaxNode:
        name = self._current()
        if not self._is_word(name):
            raise self._error("Expected data type")

        if self._is_word(name, *_COMPLEX_TYPES) and self._is_symbol(self._peek(), "<"):
            name, lt = self._advance(), self._advance()
            children: list[Any] = [name, lt]
            if name.text.upper() == "STRUCT":
                arguments = self._comma_list(self._struct_field, children)
            else:
                arguments = self._comma_list(self._data_type, children)
            children.append(self._expect_symbol(">"))
            return self._node(NodeKind.COMPLEX_TYPE, name, children, name=name, arguments=arguments)

        name = self._advance()
        children = [name]
        parameters: tuple[Token, ...] = ()
        if lparen := self._accept_symbol("("):
            children.append(lparen)
            params: list[Token] = []
            while True:
                token = self._current()
                if token is None or token.type is not TokenType.NUMBER:
                    raise self._error("Expected type parameter")
                params.append(self._advance())
                children.append(params[-1])
                if comma := self._accept_symbol(","):
                    children.append(comma)
                    continue
                break
            children.append(self._expect_symbol(")"))
            parameters = tuple(params)
        return self._node(NodeKind.PRIMITIVE_TYPE, name, children, name=name, parameters=parameters)

    def _struct_field(self) -> SyntaxNode:
        name = self._identifier(allow_reserved=True)
        colon = self._expect_symbol(":")
        data_type = self._data_type()
        children: list[Any] = [name, colon, data_type]
        if comment_kw := self._accept("COMMENT"):
            children.extend([comment_kw, self._string_literal()])
        return self._node(NodeKind.STRUCT_FIELD, name, children, name=name, data_type=data_type)

    # -- Expressions ------------------------------------------------------------

    def _expression(self) -> SyntaxNode:
        return self._or()

    def _or(self) -> SyntaxNode:
        left = self._and()
        while self._at("OR"):
            operator = self._advance()
            right = self._and()
            left = self._binary(NodeKind.LOGICAL_BINARY, left, operator, right)
        return left

    def _and(self) -> SyntaxNode:
        left = self._not()
        while self._at("AND"):
            operator = self._advance()
            right = self._not()
            left = self._binary(NodeKind.LOGICAL_BINARY, left, operator, right)
        return left

    def _not(self) -> SyntaxNode:
        if not_kw := self._accept("NOT"):
            operand = self._not()
            return self._node(NodeKind.LOGICAL_NOT, not_kw, [not_kw, operand], operator=not_kw, operand=operand)
        return self._predicated()

    def _predicated(self) -> SyntaxNode:
        left = self._comparison()
        negation = None
        if self._at("NOT") and self._is_word(self._peek(), "RLIKE", "REGEXP", "LIKE", "IN", "BETWEEN"):
            negation = self._advance()

        if self._at("RLIKE", "REGEXP", "LIKE"):
            operator = self._advance()
            pattern = self._comparison()
            return self._node(
                NodeKind.PREDICATE,
                left,
                [left, negation, operator, pattern],
                left=left,
                negation=negation,
                operator=operator,
                pattern=pattern,
            )

        if self._at("BETWEEN"):
            operator = self._advance()
            lower = self._comparison()
            and_kw = self._expect("AND")
            upper = self._comparison()
            return self._node(
                NodeKind.PREDICATE,
                left,
                [left, negation, operator, lower, and_kw, upper],
                left=left,
                negation=negation,
                operator=operator,
                lower=lower,
                upper=upper,
            )

        if self._at("IN"):
            operator = self._advance()
            lparen = self._expect_symbol("(")
            children: list[Any] = [left, negation, operator, lparen]
            if self._at_query_start(self._current()):
                query = self._query()
                values: tuple[SyntaxNode, ...] = (query,)
                children.append(query)
            else:
                values = self._comma_list(self._expression, children)
            children.append(self._expect_symbol(")"))
            return self._node(
                NodeKind.PREDICATE,
                left,
                children,
                left=left,
                negation=negation,
                operator=operator,
                values=values,
            )

        if self._at("IS"):
            operator = self._advance()
            negation = self._accept("NOT")
            if not self._at("NULL", "TRUE", "FALSE"):
                raise self._error("Expected NULL, TRUE or FALSE")
            value = self._advance()
            return self._node(
                NodeKind.PREDICATE,
                left,
                [left, operator, negation, value],
                left=left,
                negation=negation,
                operator=operator,
                value=value,
            )

        return left

    def _comparison(self) -> SyntaxNode:
        left = self._bitwise()
        while self._at_symbol(*_COMPARISON_OPERATORS):
            operator = self._advance()
            right = self._bitwise()
            left = self._binary(NodeKind.COMPARISON, left, operator, right)
        return left

    def _bitwise(self) -> SyntaxNode:
        left = self._additive()
        while self._at_symbol("&", "|", "^"):
            operator = self._advance()
            right = self._additive()
            left = self._binary(NodeKind.ARITHMETIC_BINARY, left, operator, right)
        return left

    def _additive(self) -> SyntaxNode:
        left = self._multiplicative()
        while self._at_symbol("+", "-", "||"):
            operator = self._advance()
            right = self._multiplicative()
            left = self._binary(NodeKind.ARITHMETIC_BINARY, left, operator, right)
        return left

    def _multiplicative(self) -> SyntaxNode:
        left = self._unary()
        while self._at_symbol("*", "/", "%") or self._at("DIV"):
            operator = self._advance()
            right = self._unary()
            left = self._binary(NodeKind.ARITHMETIC_BINARY, left, operator, right)
        return left

    def _binary(self, kind: NodeKind, left: SyntaxNode, operator: Token, right: SyntaxNode) -> SyntaxNode:
        return self._node(kind, left, [left, operator, right], left=left, operator=operator, right=right)

    def _unary(self) -> SyntaxNode:
        if operator := self._accept_symbol("-", "+", "~"):
            operand = self._unary()
            return self._node(NodeKind.ARITHMETIC_UNARY, operator, [operator, operand], operator=operator, operand=operand)
        return self._postfix()

    def _postfix(self) -> SyntaxNode:
        expression = self._primary()
        while True:
            if lbracket := self._accept_symbol("["):
                index = self._expression()
                rbracket = self._expect_symbol("]")
                expression = self._node(
                    NodeKind.SUBSCRIPT,
                    expression,
                    [expression, lbracket, index, rbracket],
                    value=expression,
                    index=index,
                )
            elif self._at_symbol(".") and self._at_identifier(self._peek(), allow_reserved=True):
                dot = self._advance()
                field_name = self._identifier(allow_reserved=True)
                expression = self._node(
                    NodeKind.DEREFERENCE,
                    expression,
                    [expression, dot, field_name],
                    base=expression,
                    field=field_name,
                )
            else:
                return expression

    def _primary(self) -> SyntaxNode:
        token = self._current()
        if token is None:
            raise self._error("Expected expression")

        if token.type is TokenType.NUMBER:
            self._advance()
            return self._node(NodeKind.NUMERIC_LITERAL, token, [token])
        if token.type is TokenType.STRING:
            return self._string_literal()
        if token.type is TokenType.QUOTED_IDENTIFIER:
            return self._column_or_call()

        if token.type is TokenType.SYMBOL:
            if token.text == "*":
                self._advance()
                return self._node(NodeKind.STAR, token, [token], qualifier=None)
            if token.text == "(":
                lparen = self._advance()
                if self._at_query_start(self._current()):
                    query = self._query()
                    rparen = self._expect_symbol(")")
                    return self._node(NodeKind.SUBQUERY_EXPRESSION, lparen, [lparen, query, rparen], query=query)
                inner = self._expression()
                rparen = self._expect_symbol(")")
                return self._node(NodeKind.PARENTHESIZED, lparen, [lparen, inner, rparen], expression=inner)
            raise self._error("Expected expression")

        word = token.text.upper()
        followed_by_paren = self._is_symbol(self._peek(), "(")
        if word in ("TRUE", "FALSE"):
            self._advance()
            return self._node(NodeKind.BOOLEAN_LITERAL, token, [token])
        if word == "NULL":
            self._advance()
            return self._node(NodeKind.NULL_LITERAL, token, [token])
        if word == "CASE":
            return self._case()
        if word == "CAST" and followed_by_paren:
            return self._cast()
        if word == "EXISTS" and followed_by_paren:
            return self._exists()
        if word == "INTERVAL":
            return self._interval()
        if followed_by_paren:
            name_part = self._identifier(allow_reserved=True)
            name = self._node(NodeKind.QUALIFIED_NAME, name_part, [name_part], parts=(name_part,))
            return self._function_call(name)
        if word in RESERVED_WORDS:
            raise self._error("Unexpected keyword")
        return self._column_or_call()

    def _string_literal(self) -> SyntaxNode:
        first = self._current()
        if first is None or first.type is not TokenType.STRING:
            raise self._error("Expected string literal")
        segments: list[Token] = []
        while (token := self._current()) is not None and token.type is TokenType.STRING:
            segments.append(self._advance())
        return self._node(NodeKind.STRING_LITERAL, first, list(segments), segments=tuple(segments))

    def _column_or_call(self) -> SyntaxNode:
        name = self._qualified_name()
        if self._at_symbol(".") and self._is_symbol(self._peek(), "*"):
            dot, star = self._advance(), self._advance()
            return self._node(NodeKind.STAR, name, [name, dot, star], qualifier=name)
        if self._at_symbol("("):
            return self._function_call(name)
        return self._node(NodeKind.COLUMN_REFERENCE, name, [name], name=name)

    def _function_call(self, name: SyntaxNode) -> SyntaxNode:
        lparen = self._expect_symbol("(")
        children: list[Any] = [name, lparen]
        quantifier = self._accept("DISTINCT", "ALL")
        children.append(quantifier)
        arguments: tuple[SyntaxNode, ...] = ()
        if star := self._accept_symbol("*"):
            arguments = (self._node(NodeKind.STAR, star, [star], qualifier=None),)
            children.append(arguments[0])
        elif not self._at_symbol(")"):
            arguments = self._comma_list(self._expression, children)
        rparen = self._expect_symbol(")")
        children.append(rparen)

        window = self._window_spec() if self._at("OVER") else None
        children.append(window)
        return self._node(
            NodeKind.FUNCTION_CALL,
            name,
            children,
            name=name,
            lparen=lparen,
            quantifier=quantifier,
            arguments=arguments,
            rparen=rparen,
            window=window,
        )

    def _window_spec(self) -> SyntaxNode:
        over_kw = self._expect("OVER")
        if self._at_identifier():
            window_name = self._identifier()
            return self._node(NodeKind.WINDOW_SPEC, over_kw, [over_kw, window_name], name=window_name)

        children: list[Any] = [over_kw, self._expect_symbol("(")]
        partition_by: tuple[SyntaxNode, ...] = ()
        order_by: tuple[SyntaxNode, ...] = ()
        if self._at_pair("PARTITION", "BY") or self._at_pair("DISTRIBUTE", "BY"):
            children.extend([self._advance(), self._advance()])
            partition_by = self._comma_list(self._expression, children)
        if self._at_pair("ORDER", "BY") or self._at_pair("SORT", "BY"):
            children.extend([self._advance(), self._advance()])
            order_by = self._comma_list(self._sort_item, children)
        frame = self._window_frame() if self._at("ROWS", "RANGE") else None
        children.append(frame)
        children.append(self._expect_symbol(")"))
        return self._node(
            NodeKind.WINDOW_SPEC,
            over_kw,
            children,
            partition_by=partition_by,
            order_by=order_by,
            frame=frame,
        )

    def _window_frame(self) -> SyntaxNode:
        unit = self._advance()
        if between_kw := self._accept("BETWEEN"):
            lower = self._frame_bound()
            and_kw = self._expect("AND")
            upper = self._frame_bound()
            return self._node(
                NodeKind.WINDOW_FRAME,
                unit,
                [unit, between_kw, lower, and_kw, upper],
                unit=unit,
                lower=lower,
                upper=upper,
            )
        lower = self._frame_bound()
        return self._node(NodeKind.WINDOW_FRAME, unit, [unit, lower], unit=unit, lower=lower, upper=None)

    def _frame_bound(self) -> SyntaxNode:
        start = self._current()
        if start is None:
            raise self._error("Expected frame bound")
        if self._at_pair("CURRENT", "ROW"):
            current_kw, row_kw = self._advance(), self._advance()
            return self._node(NodeKind.FRAME_BOUND, current_kw, [current_kw, row_kw], offset=None)
        if self._at("UNBOUNDED"):
            offset_kw = self._advance()
            direction = self._expect_direction()
            return self._node(NodeKind.FRAME_BOUND, offset_kw, [offset_kw, direction], offset=None, direction=direction)
        offset = self._additive()
        direction = self._expect_direction()
        return self._node(NodeKind.FRAME_BOUND, start, [offset, direction], offset=offset, direction=direction)

    def _expect_direction(self) -> Token:
        if not self._at("PRECEDING", "FOLLOWING"):
            raise self._error("Expected PRECEDING or FOLLOWING")
        return self._advance()

    def _cast(self) -> SyntaxNode:
        cast_kw = self._expect("CAST")
        lparen = self._expect_symbol("(")
        expression = self._expression()
        as_kw = self._expect("AS")
        data_type = self._data_type()
        rparen = self._expect_symbol(")")
        return self._node(
            NodeKind.CAST,
            cast_kw,
            [cast_kw, lparen, expression, as_kw, data_type, rparen],
            expression=expression,
            data_type=data_type,
        )

    def _case(self) -> SyntaxNode:
        case_kw = self._expect("CASE")
        children: list[Any] = [case_kw]
        operand = None if self._at("WHEN") else self._expression()
        children.append(operand)
        whens: list[SyntaxNode] = []
        while when_kw := self._accept("WHEN"):
            condition = self._expression()
            then_kw = self._expect("THEN")
            result = self._expression()
            whens.append(
                self._node(
                    NodeKind.WHEN_CLAUSE,
                    when_kw,
                    [when_kw, condition, then_kw, result],
                    condition=condition,
                    result=result,
                )
            )
            children.append(whens[-1])
        if not whens:
            raise self._error("Expected WHEN")
        default = None
        if else_kw := self._accept("ELSE"):
            default = self._expression()
            children.extend([else_kw, default])
        children.append(self._expect("END"))
        return self._node(
            NodeKind.CASE_EXPRESSION,
            case_kw,
            children,
            operand=operand,
            when_clauses=tuple(whens),
            default=default,
        )

    def _exists(self) -> SyntaxNode:
        exists_kw = self._expect("EXISTS")
        lparen = self._expect_symbol("(")
        query = self._query()
        rparen = self._expect_symbol(")")
        return self._node(NodeKind.EXISTS, exists_kw, [exists_kw, lparen, query, rparen], query=query)

    def _interval(self) -> SyntaxNode:
        interval_kw = self._expect("INTERVAL")
        value = self._unary()
        children: list[Any] = [interval_kw, value]
        if not self._at_identifier():
            raise self._error("Expected interval unit")
        unit = self._advance()
        children.append(unit)
        if to_kw := self._accept("TO"):
            children.extend([to_kw, self._advance()])
        return self._node(NodeKind.INTERVAL_LITERAL, interval_kw, children, value=value, unit=unit)

    # -- Names ------------------------------------------------------------------

    def _identifier(self, *, allow_reserved: bool = False) -> SyntaxNode:
        token = self._current()
        if token is None or not self._at_identifier(token, allow_reserved=allow_reserved):
            raise self._error("Expected identifier")
        self._advance()
        kind = NodeKind.QUOTED_IDENTIFIER if token.type is TokenType.QUOTED_IDENTIFIER else NodeKind.UNQUOTED_IDENTIFIER
        return self._node(kind, token, [token])

    def _qualified_name(self) -> SyntaxNode:
        first = self._identifier()
        children: list[Any] = [first]
        parts = [first]
        while self._at_symbol(".") and self._at_identifier(self._peek(), allow_reserved=True):
            children.append(self._advance())
            parts.append(self._identifier(allow_reserved=True))
            children.append(parts[-1])
        return self._node(NodeKind.QUALIFIED_NAME, first, children, parts=tuple(parts))


def parse(tokens: TokenStream) -> SyntaxNode:
    """Parse *tokens* into a ``SINGLE_STATEMENT`` tree.

    Raises
    ------
    SqlParseError
        If the main-channel tokens do not form a supported Hive statement.
    """
    tree = HiveParser(tokens).parse_statement()
    logger.debug("Parsed %s spanning tokens %d..%d", tree.kind.value, tree.start, tree.stop)
    return tree
