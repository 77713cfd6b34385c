"""
Template Parser

Turns a template body into a small typed tree:

    Text("Party: "), Placeholder("partyName"),
    Conditional("hasDeposit", (Text(" Deposit: "), Placeholder("depositAmount"))),
    Text(".")

Tag syntax:
    {{name}}              -> placeholder
    {{#if flag}} ... {{/if}}  -> conditional block, may nest
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Set, Tuple, Union

from ..exceptions import TemplateSyntaxError

TAG_PATTERN = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
IF_PATTERN = re.compile(r"^#if\s+(\S+)$")


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Placeholder:
    name: str


@dataclass(frozen=True)
class Conditional:
    flag: str
    children: Tuple["Node", ...]


Node = Union[Text, Placeholder, Conditional]


def _position(body: str, offset: int) -> Tuple[int, int]:
    line = body.count("\n", 0, offset) + 1
    column = offset - (body.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _literal(body: str, start: int, end: int) -> Text:
    chunk = body[start:end]
    stray = chunk.find("{{")
    if stray != -1:
        line, column = _position(body, start + stray)
        raise TemplateSyntaxError("Unclosed '{{' tag", line, column)
    return Text(chunk)


def parse(body: str) -> Tuple[Node, ...]:
    """
    Parse a template body into its node tree.

    Raises TemplateSyntaxError for unterminated or stray blocks, unknown tags
    and unclosed braces.
    """
    # Each frame: (flag, children, offset of the opening tag)
    stack: List[Tuple[str, List[Node], int]] = [("", [], 0)]
    cursor = 0

    for match in TAG_PATTERN.finditer(body):
        if match.start() > cursor:
            stack[-1][1].append(_literal(body, cursor, match.start()))
        cursor = match.end()

        inner = match.group(1).strip()
        if_match = IF_PATTERN.match(inner)

        if if_match:
            flag = if_match.group(1)
            if not NAME_PATTERN.match(flag):
                line, column = _position(body, match.start())
                raise TemplateSyntaxError(f"Invalid flag name '{flag}'", line, column)
            stack.append((flag, [], match.start()))
        elif inner == "/if":
            if len(stack) == 1:
                line, column = _position(body, match.start())
                raise TemplateSyntaxError("'{{/if}}' without a matching '{{#if}}'", line, column)
            flag, children, _ = stack.pop()
            stack[-1][1].append(Conditional(flag, tuple(children)))
        elif inner == "#if":
            line, column = _position(body, match.start())
            raise TemplateSyntaxError("'{{#if}}' requires a flag name", line, column)
        elif NAME_PATTERN.match(inner):
            stack[-1][1].append(Placeholder(inner))
        else:
            line, column = _position(body, match.start())
            raise TemplateSyntaxError(f"Unsupported tag '{{{{{inner}}}}}'", line, column)

    if cursor < len(body):
        stack[-1][1].append(_literal(body, cursor, len(body)))

    if len(stack) > 1:
        flag, _, offset = stack[-1]
        line, column = _position(body, offset)
        raise TemplateSyntaxError(f"Unterminated '{{{{#if {flag}}}}}' block", line, column)

    return tuple(stack[0][1])


def walk(nodes: Iterable[Node]) -> Iterable[Node]:
    """Yield every node in document order, descending into conditionals."""
    for node in nodes:
        yield node
        if isinstance(node, Conditional):
            yield from walk(node.children)


def placeholder_names(nodes: Iterable[Node]) -> Set[str]:
    return {n.name for n in walk(nodes) if isinstance(n, Placeholder)}


def flag_names(nodes: Iterable[Node]) -> Set[str]:
    return {n.flag for n in walk(nodes) if isinstance(n, Conditional)}
