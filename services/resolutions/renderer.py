"""
Template Renderer

A small template interpreter for resolution titles and bodies.

Token forms:
    {{path}}                                     value lookup
    {{path | filterName}}                        lookup + filter (longDate, money, pct)
    {{title == 'Other' ? titleOther : title}}    single equality ternary
    {{#if flag}} ... {{/if}}                     truthy block
    {{#if scopes.includes('banking')}} ... {{/if}}
    {{#if method == 'Wire'}} ... {{/if}}
    {{#each signers}} {{this.name}} {{/each}}    iteration, element bound to `this`

The template is tokenized on {{ }}, parsed into a node tree
(Text, Var, Ternary, If, Each) and evaluated recursively against a
ValueStore. Substituted values are never re-parsed.

Rendering is best-effort: missing values, type mismatches, unknown
filters, unbalanced block tags and unparseable expressions all degrade
to empty output instead of raising.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import Any, List, Optional, Tuple, Union

from .filters import apply_filter
from .values import ValueStore

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r'\{\{(.*?)\}\}', re.S)

# Expression lexer: quoted literals, operators, and bare words (paths, numbers)
LEXER_PATTERN = re.compile(r"""
    \s*(?:
        (?P<string>'[^']*'|"[^"]*")
      | (?P<op>==|\?|:|\||\(|\))
      | (?P<word>[^\s'"=?:|()]+)
    )\s*
""", re.X)

INCLUDES_SUFFIX = '.includes'

_MISSING = object()


class ExpressionError(ValueError):
    """An expression inside {{ }} could not be parsed."""
    pass


# =============================================================================
# NODES
# =============================================================================

@dataclass(eq=False)
class Text:
    text: str


@dataclass(eq=False)
class Var:
    path: str
    filter_name: Optional[str] = None


@dataclass(eq=False)
class Operand:
    """Ternary branch: a path to look up, or a quoted literal."""
    value: str
    is_literal: bool = False


@dataclass(eq=False)
class Ternary:
    lhs: str
    literal: str
    if_true: Operand
    if_false: Operand


@dataclass(eq=False)
class Truthy:
    path: str


@dataclass(eq=False)
class Includes:
    path: str
    needle: str


@dataclass(eq=False)
class Equals:
    path: str
    literal: str


ConditionNode = Union[Truthy, Includes, Equals]


@dataclass(eq=False)
class If:
    condition: ConditionNode
    children: list = field(default_factory=list)


@dataclass(eq=False)
class Each:
    path: str
    children: list = field(default_factory=list)


@dataclass(eq=False)
class Blank:
    """A token that renders nothing (stray close tag, bad expression)."""
    source: str


Node = Union[Text, Var, Ternary, If, Each, Blank]


# =============================================================================
# LEXING / EXPRESSION PARSING
# =============================================================================

def tokenize_expression(expr: str) -> List[Tuple[str, str]]:
    """
    Split an expression into (kind, text) pairs.

    Examples:
        "a == 'x' ? b : c" -> [('word','a'), ('op','=='), ('string','x'),
                               ('op','?'), ('word','b'), ('op',':'), ('word','c')]
    """
    tokens = []
    pos = 0
    expr = expr.strip()
    while pos < len(expr):
        m = LEXER_PATTERN.match(expr, pos)
        if not m or m.end() == pos:
            raise ExpressionError(f"Unexpected character at {pos} in {expr!r}")
        pos = m.end()
        if m.group('string') is not None:
            tokens.append(('string', m.group('string')[1:-1]))
        elif m.group('op') is not None:
            tokens.append(('op', m.group('op')))
        else:
            tokens.append(('word', m.group('word')))
    return tokens


def _literal(token: Tuple[str, str]) -> str:
    kind, text = token
    if kind not in ('string', 'word'):
        raise ExpressionError(f"Expected a literal, got {text!r}")
    return text


def _operand(token: Tuple[str, str]) -> Operand:
    kind, text = token
    if kind == 'string':
        return Operand(text, is_literal=True)
    if kind == 'word':
        return Operand(text)
    raise ExpressionError(f"Expected a path or literal, got {text!r}")


def _word(token: Tuple[str, str]) -> str:
    kind, text = token
    if kind != 'word':
        raise ExpressionError(f"Expected a path, got {text!r}")
    return text


def parse_condition(expr: str) -> ConditionNode:
    """
    Parse an #if condition.

    Grammar:
        path
        path.includes(literal)
        path == literal
    """
    tokens = tokenize_expression(expr)
    if not tokens:
        raise ExpressionError("Empty condition")

    path = _word(tokens[0])
    rest = tokens[1:]

    if path.endswith(INCLUDES_SUFFIX) and len(rest) == 3 \
            and rest[0] == ('op', '(') and rest[2] == ('op', ')'):
        return Includes(path[:-len(INCLUDES_SUFFIX)], _literal(rest[1]))

    if not rest:
        return Truthy(path)

    if len(rest) == 2 and rest[0] == ('op', '=='):
        return Equals(path, _literal(rest[1]))

    raise ExpressionError(f"Unsupported condition {expr!r}")


def parse_expression(expr: str) -> Union[Var, Ternary]:
    """
    Parse a substitution expression.

    Grammar:
        path [ '|' filterName ]
        path '==' literal '?' operand ':' operand
    """
    tokens = tokenize_expression(expr)
    if not tokens:
        raise ExpressionError("Empty expression")

    if ('op', '?') in tokens:
        if len(tokens) != 7 or tokens[1] != ('op', '==') \
                or tokens[3] != ('op', '?') or tokens[5] != ('op', ':'):
            raise ExpressionError(f"Unsupported ternary {expr!r}")
        return Ternary(
            lhs=_word(tokens[0]),
            literal=_literal(tokens[2]),
            if_true=_operand(tokens[4]),
            if_false=_operand(tokens[6]),
        )

    path = _word(tokens[0])
    if len(tokens) == 1:
        return Var(path)
    if len(tokens) == 3 and tokens[1] == ('op', '|'):
        return Var(path, _word(tokens[2]))

    raise ExpressionError(f"Unsupported expression {expr!r}")


# =============================================================================
# TEMPLATE PARSING
# =============================================================================

class _Frame:
    """An open block while parsing."""

    def __init__(self, kind: str, node: Optional[Node], children: list, parent: Optional[list]):
        self.kind = kind
        self.node = node
        self.children = children
        self.parent = parent


def _unwind(frame: _Frame) -> None:
    """Drop an unclosed block's tag, keeping its children in place."""
    index = frame.parent.index(frame.node)
    frame.parent[index:index + 1] = frame.children
    logger.debug(f"Unclosed #{frame.kind} block ignored")


def _close(stack: List[_Frame], kind: str, source: str) -> None:
    for depth in range(len(stack) - 1, 0, -1):
        if stack[depth].kind == kind:
            while len(stack) - 1 > depth:
                _unwind(stack.pop())
            stack.pop()
            return
    logger.debug(f"Stray {source!r} ignored")
    stack[-1].children.append(Blank(source))


def _parse_tag(expr: str, source: str) -> Node:
    try:
        return parse_expression(expr)
    except ExpressionError as e:
        logger.debug(f"Unparseable token {source!r}: {e}")
        return Blank(source)


@lru_cache(maxsize=256)
def parse_template(template: str) -> Tuple[Node, ...]:
    """
    Parse a template string into a node tree.

    Results are cached; the returned nodes must not be mutated.
    """
    root: list = []
    stack = [_Frame('root', None, root, None)]
    pos = 0

    for m in TOKEN_PATTERN.finditer(template):
        if m.start() > pos:
            stack[-1].children.append(Text(template[pos:m.start()]))
        pos = m.end()

        source = m.group(0)
        expr = m.group(1).strip()
        parts = expr.split(None, 1)
        head = parts[0] if parts else ''
        rest = parts[1] if len(parts) > 1 else ''

        if head in ('#if', '#each'):
            kind = head[1:]
            try:
                node = If(parse_condition(rest)) if kind == 'if' else Each(_word(tokenize_expression(rest)[0]))
            except (ExpressionError, IndexError) as e:
                # Keep the block so its body is still consumed, but render nothing
                logger.debug(f"Bad #{kind} expression {rest!r}: {e}")
                node = If(Truthy('')) if kind == 'if' else Each('')
            stack[-1].children.append(node)
            stack.append(_Frame(kind, node, node.children, stack[-1].children))
        elif expr in ('/if', '/each'):
            _close(stack, expr[1:], source)
        else:
            stack[-1].children.append(_parse_tag(expr, source))

    if pos < len(template):
        stack[-1].children.append(Text(template[pos:]))

    while len(stack) > 1:
        _unwind(stack.pop())

    return tuple(root)


# =============================================================================
# EVALUATION
# =============================================================================

def format_value(value: Any) -> str:
    """
    Render a looked-up value as text.

    Examples:
        "abc"         -> "abc"
        True          -> "true"
        250000.0      -> "250000"
        2.5           -> "2.5"
        ["a", "b"]    -> "a, b"
        {"id": "X"}   -> ""
        None          -> ""
    """
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ', '.join(format_value(v) for v in value if not isinstance(v, Mapping))
    return ''


def is_truthy(value: Any) -> bool:
    """bool as is, non-empty string, non-zero number; anything else is false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return bool(value)
    if isinstance(value, (int, float)):
        return value != 0
    return False


class TemplateRenderer:
    """
    Renders template strings against a ValueStore.

    Usage:
        renderer = TemplateRenderer()
        title = renderer.render(template.document.title, store.copy())
    """

    def render(self, template: str, store: ValueStore) -> str:
        if not template:
            return ''
        return self._render_nodes(parse_template(template), store)

    def _render_nodes(self, nodes, store: ValueStore) -> str:
        return ''.join(self._render_node(node, store) for node in nodes)

    def _render_node(self, node: Node, store: ValueStore) -> str:
        if isinstance(node, Text):
            return node.text
        if isinstance(node, Var):
            return self._render_var(node, store)
        if isinstance(node, Ternary):
            return self._render_ternary(node, store)
        if isinstance(node, If):
            if self.evaluate_condition(node.condition, store):
                return self._render_nodes(node.children, store)
            return ''
        if isinstance(node, Each):
            return self._render_each(node, store)
        return ''

    def _render_var(self, node: Var, store: ValueStore) -> str:
        value = store.lookup(node.path, _MISSING)
        if value is _MISSING:
            return ''
        return apply_filter(value, format_value(value), node.filter_name)

    def _render_ternary(self, node: Ternary, store: ValueStore) -> str:
        lhs = format_value(store.lookup(node.lhs))
        branch = node.if_true if lhs == node.literal else node.if_false
        if branch.is_literal:
            return branch.value
        value = store.lookup(branch.value, _MISSING)
        if value is _MISSING:
            return branch.value
        return format_value(value)

    def _render_each(self, node: Each, store: ValueStore) -> str:
        items = store.lookup(node.path) if node.path else None
        if not isinstance(items, (list, tuple)):
            return ''
        return ''.join(
            self._render_nodes(node.children, store.child(this=item))
            for item in items
        )

    def evaluate_condition(self, condition: ConditionNode, store: ValueStore) -> bool:
        if not condition.path:
            return False
        if isinstance(condition, Includes):
            items = store.lookup(condition.path)
            return isinstance(items, (list, tuple)) and condition.needle in items
        if isinstance(condition, Equals):
            return format_value(store.lookup(condition.path)) == condition.literal
        return is_truthy(store.lookup(condition.path))


def render(template: str, store: ValueStore) -> str:
    """Convenience wrapper around TemplateRenderer().render()."""
    return TemplateRenderer().render(template, store)
