"""Tree walker and stage dispatcher.

A :class:`Stage` binds a fresh token stream and edit ledger to a table of
rule handlers keyed by ``(NodeKind, phase)``.  :func:`walk` traverses a
syntax tree depth-first, pre-order, calling the stage's on-enter handlers
before a node's children and its on-exit handlers after them.

Handlers return a :class:`RuleOutcome` (or ``None``) to continue, or an
:class:`Unsupported` value to stop the walk.  Exceptions raised by a handler
propagate to the caller untouched.
"""

from __future__ import annotations

import enum
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from rewrite_engine.ledger import EditLedger
from rewrite_engine.syntax import NodeKind, SyntaxNode
from rewrite_engine.tokens import TokenStream

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    ENTER = "enter"
    EXIT = "exit"


class RuleOutcome(str, enum.Enum):
    APPLIED = "applied"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class Unsupported:
    """A rule's preconditions failed; the stage must be discarded."""

    rule: str
    reason: str

    def __str__(self) -> str:
        return f"{self.rule}: {self.reason}"


HandlerResult = RuleOutcome | Unsupported | None
RuleHandler = Callable[[SyntaxNode, TokenStream, EditLedger], HandlerResult]


@dataclass(frozen=True)
class Rule:
    """A named rule handler registered for one node kind and phase."""

    name: str
    kind: NodeKind
    phase: Phase
    handler: RuleHandler
    description: str = ""


@dataclass
class WalkResult:
    """Outcome of one walk.

    ``applied`` counts handler invocations that reported
    :attr:`RuleOutcome.APPLIED`.
    """

    applied: int = 0
    unsupported: Unsupported | None = None

    @property
    def ok(self) -> bool:
        return self.unsupported is None


class Stage:
    """A named set of rules bound to one token stream and its ledger.

    Parameters
    ----------
    name:
        Stage name used in logs and reports.
    tokens:
        The freshly lexed stream every rule edits.
    rules:
        Rules in registration order; handlers for the same node kind and
        phase run in that order.
    check_conflicts:
        Forwarded to the stage's :class:`EditLedger`.
    """

    def __init__(
        self,
        name: str,
        tokens: TokenStream,
        rules: Iterable[Rule] = (),
        *,
        check_conflicts: bool = True,
    ) -> None:
        self.name = name
        self.tokens = tokens
        self.ledger = EditLedger(tokens, check_conflicts=check_conflicts)
        self._handlers: dict[tuple[NodeKind, Phase], list[Rule]] = defaultdict(list)
        self._rules: list[Rule] = []
        for rule in rules:
            self.add_rule(rule)

    def add_rule(self, rule: Rule) -> None:
        self._rules.append(rule)
        self._handlers[(rule.kind, rule.phase)].append(rule)

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules)

    def handlers_for(self, kind: NodeKind, phase: Phase) -> list[Rule]:
        return self._handlers.get((kind, phase), [])

    def __repr__(self) -> str:
        return f"Stage(name={self.name!r}, rules={len(self._rules)}, tokens={len(self.tokens)})"


@dataclass
class _Frame:
    node: SyntaxNode
    entered: bool = False
    children: list[SyntaxNode] = field(default_factory=list)


def _dispatch(stage: Stage, node: SyntaxNode, phase: Phase, result: WalkResult) -> bool:
    for rule in stage.handlers_for(node.kind, phase):
        outcome = rule.handler(node, stage.tokens, stage.ledger)
        if isinstance(outcome, Unsupported):
            logger.debug("Rule %s unsupported at tokens %d..%d: %s", rule.name, node.start, node.stop, outcome.reason)
            result.unsupported = outcome
            return False
        if outcome is RuleOutcome.APPLIED:
            result.applied += 1
    return True


def walk(root: SyntaxNode, stage: Stage) -> WalkResult:
    """Walk *root* depth-first, dispatching to *stage*'s handlers.

    Uses an explicit stack rather than recursion.
    """
    result = WalkResult()
    stack: list[_Frame] = [_Frame(root)]
    while stack:
        frame = stack[-1]
        if not frame.entered:
            frame.entered = True
            if not _dispatch(stage, frame.node, Phase.ENTER, result):
                return result
            frame.children = list(frame.node.child_nodes())
            frame.children.reverse()
        if frame.children:
            stack.append(_Frame(frame.children.pop()))
            continue
        stack.pop()
        if not _dispatch(stage, frame.node, Phase.EXIT, result):
            return result
    return result
