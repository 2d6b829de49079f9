"""Hive → Presto rule catalog.

Each rule fixes one dialect difference by recording edits against the
node it is registered for.  Nothing outside a rule's own anchors is ever
re-rendered, so argument and pattern subtrees keep their text and can be
rewritten independently by other rules.

Resolutions::

    col RLIKE '.*'                    → regexp_like(col, '.*')
    col NOT REGEXP '.*'               → not regexp_like(col, '.*')
    7 % 2                             → mod(7, 2)
    array(1, 2)                       → [1, 2]
    STRING                            → varchar
    LATERAL VIEW explode(xs) t AS x   → cross join unnest(xs) as t (x)
    `col`                             → "col"
    1var                              → "1var"
    CLUSTER BY a / DISTRIBUTE BY a    → (removed)
    SORT BY a                         → order BY a
    db.fn(x)                          → "db.fn"(x)
    "text"                            → 'text'
"""

from __future__ import annotations

import logging
import re

from rewrite_engine.ledger import EditLedger
from rewrite_engine.rules.base import (
    delete_clause,
    delete_token,
    identifier_text,
    identifier_token,
    is_simple_name,
    name_parts,
)
from rewrite_engine.syntax import NodeKind, SyntaxNode
from rewrite_engine.tokens import TokenStream
from rewrite_engine.walker import Phase, Rule, RuleOutcome, Stage, Unsupported

logger = logging.getLogger(__name__)

STAGE_NAME = "presto"

_REGEX_OPERATORS = ("RLIKE", "REGEXP")

# Quote and backslash escapes; Presto string literals have no escapes.
_QUOTE_ESCAPE = re.compile(r"""\\([\\'"])""")


def _is_regex_predicate(node: SyntaxNode) -> bool:
    operator = node.get("operator")
    return operator is not None and operator.text.upper() in _REGEX_OPERATORS


def _is_modulo(node: SyntaxNode) -> bool:
    operator = node.get("operator")
    return operator is not None and operator.text == "%"


# -- regex-match operator -----------------------------------------------------


def enter_regex_predicate(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    if not _is_regex_predicate(node):
        return RuleOutcome.NO_MATCH
    prefix = "not regexp_like(" if node.get("negation") is not None else "regexp_like("
    ledger.insert_before(node.start, prefix)
    return RuleOutcome.APPLIED


def exit_regex_predicate(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    if not _is_regex_predicate(node):
        return RuleOutcome.NO_MATCH
    ledger.insert_after(node.get("left").stop, ",")
    negation = node.get("negation")
    if negation is not None:
        delete_token(ledger, negation)
    delete_token(ledger, node.get("operator"))
    ledger.insert_after(node.stop, ")")
    return RuleOutcome.APPLIED


# -- modulo operator ------------------------------------------------------------


def enter_modulo(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    if not _is_modulo(node):
        return RuleOutcome.NO_MATCH
    ledger.insert_before(node.start, "mod(")
    return RuleOutcome.APPLIED


def exit_modulo(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    if not _is_modulo(node):
        return RuleOutcome.NO_MATCH
    delete_token(ledger, node.get("operator"))
    ledger.insert_after(node.get("left").stop, ",")
    ledger.insert_after(node.stop, ")")
    return RuleOutcome.APPLIED


# -- array constructor ----------------------------------------------------------


def array_constructor(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    if not is_simple_name(node.get("name"), "array"):
        return RuleOutcome.NO_MATCH
    # Trivia may sit between the name and the parenthesis.
    lparen = tokens.find(node.start, "(")
    ledger.replace(node.start, lparen, "[")
    ledger.replace(node.get("rparen").index, node.get("rparen").index, "]")
    return RuleOutcome.APPLIED


# -- string type ----------------------------------------------------------------


def string_type(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    name = node.get("name")
    if not name.matches("string"):
        return RuleOutcome.NO_MATCH
    ledger.replace(name.index, name.index, "varchar")
    return RuleOutcome.APPLIED


# -- lateral view -----------------------------------------------------------------


def lateral_view(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome | Unsupported:
    udtf = node.get("udtf")
    if not is_simple_name(udtf, "explode"):
        return Unsupported("lateral_view", f"only UDTF explode is supported, got {udtf.compact_text()!r}")
    if node.get("outer") is not None:
        return Unsupported("lateral_view", "LATERAL VIEW OUTER has no unnest equivalent")

    ledger.replace(node.start, udtf.stop, "cross join unnest")
    ledger.insert_after(node.get("rparen").index, " as")
    as_keyword = node.get("as_keyword")
    if as_keyword is not None:
        delete_token(ledger, as_keyword)

    aliases = node.get_all("column_aliases")
    if aliases:
        ledger.insert_before(aliases[0].start, "(")
        ledger.insert_after(aliases[-1].stop, ")")
    return RuleOutcome.APPLIED


# -- identifiers ----------------------------------------------------------------


def backtick_identifier(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    token = identifier_token(node)
    if not token.text.startswith("`"):
        return RuleOutcome.NO_MATCH
    ledger.replace(token.index, token.index, '"' + token.text[1:-1] + '"')
    return RuleOutcome.APPLIED


def leading_digit_identifier(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    token = identifier_token(node)
    if not token.text[0].isdigit():
        return RuleOutcome.NO_MATCH
    ledger.replace(token.index, token.index, f'"{token.text}"')
    return RuleOutcome.APPLIED


# -- query organization -----------------------------------------------------------


def query_organization(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    outcome = RuleOutcome.NO_MATCH
    for label in ("cluster_by", "distribute_by"):
        clause = node.get(label)
        if clause is not None:
            delete_clause(ledger, clause.start, clause.stop)
            outcome = RuleOutcome.APPLIED

    sort_by = node.get("sort_by")
    if sort_by is not None:
        keyword = sort_by.get("keyword")
        ledger.replace(keyword.index, keyword.index, "order")
        outcome = RuleOutcome.APPLIED
    return outcome


# -- dotted function names --------------------------------------------------------


def dotted_function_name(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    name = node.get("name")
    parts = name_parts(name)
    if len(parts) < 2:
        return RuleOutcome.NO_MATCH
    # One replacement over the whole name, so backtick parts nested in it lose.
    joined = ".".join(identifier_text(part) for part in parts).replace('"', '""')
    ledger.replace(name.start, name.stop, f'"{joined}"')
    return RuleOutcome.APPLIED


# -- double-quoted strings --------------------------------------------------------


def double_quoted_string(node: SyntaxNode, tokens: TokenStream, ledger: EditLedger) -> RuleOutcome:
    outcome = RuleOutcome.NO_MATCH
    for segment in node.get_all("segments"):
        if not segment.text.startswith('"'):
            continue
        interior = _QUOTE_ESCAPE.sub(r"\1", segment.text[1:-1]).replace("'", "''")
        ledger.replace(segment.index, segment.index, f"'{interior}'")
        outcome = RuleOutcome.APPLIED
    return outcome


PRESTO_RULES: tuple[Rule, ...] = (
    Rule("regex_match", NodeKind.PREDICATE, Phase.ENTER, enter_regex_predicate,
         "RLIKE / REGEXP → regexp_like(left, pattern)"),
    Rule("regex_match", NodeKind.PREDICATE, Phase.EXIT, exit_regex_predicate),
    Rule("modulo", NodeKind.ARITHMETIC_BINARY, Phase.ENTER, enter_modulo, "a % b → mod(a, b)"),
    Rule("modulo", NodeKind.ARITHMETIC_BINARY, Phase.EXIT, exit_modulo),
    Rule("array_constructor", NodeKind.FUNCTION_CALL, Phase.ENTER, array_constructor, "array(x, y) → [x, y]"),
    Rule("string_type", NodeKind.PRIMITIVE_TYPE, Phase.ENTER, string_type, "STRING → varchar"),
    Rule("lateral_view", NodeKind.LATERAL_VIEW, Phase.ENTER, lateral_view,
         "LATERAL VIEW explode(xs) t AS x → cross join unnest(xs) as t (x)"),
    Rule("backtick_identifier", NodeKind.QUOTED_IDENTIFIER, Phase.ENTER, backtick_identifier, '`name` → "name"'),
    Rule("leading_digit_identifier", NodeKind.UNQUOTED_IDENTIFIER, Phase.ENTER, leading_digit_identifier,
         '1var → "1var"'),
    Rule("query_organization", NodeKind.QUERY_ORGANIZATION, Phase.EXIT, query_organization,
         "drop CLUSTER BY / DISTRIBUTE BY, SORT BY → order BY"),
    Rule("dotted_function_name", NodeKind.FUNCTION_CALL, Phase.EXIT, dotted_function_name,
         'db.fn(x) → "db.fn"(x)'),
    Rule("double_quoted_string", NodeKind.STRING_LITERAL, Phase.EXIT, double_quoted_string,
         "\"text\" → 'text'"),
)  # fmt: skip


def presto_stage(tokens: TokenStream, *, check_conflicts: bool = True) -> Stage:
    """Build a fresh Presto stage bound to *tokens*."""
    return Stage(STAGE_NAME, tokens, PRESTO_RULES, check_conflicts=check_conflicts)


PRESTO_STAGES = (presto_stage,)
