"""
Template Renderer

Pure expansion of a parsed template against a FieldBindings set. Missing
placeholder values render as an empty string and are reported back; syntax
errors are raised by the parser before anything is emitted.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from .bindings import FieldBindings
from .parser import Conditional, Node, Placeholder, Text, parse


@dataclass(frozen=True)
class RenderResult:
    text: str
    missing: Tuple[str, ...] = ()
    missing_required: Tuple[str, ...] = ()

    @property
    def warnings(self) -> List[str]:
        return [f"No value bound for '{name}'" for name in self.missing]


def render(
    template: Union[str, Sequence[Node]],
    bindings: FieldBindings,
    *,
    required_fields: Iterable[str] = (),
) -> RenderResult:
    """
    Render a template body (or an already parsed node tree).

    Same template and bindings always produce the same text.
    """
    nodes = parse(template) if isinstance(template, str) else template
    out: List[str] = []
    missing: List[str] = []
    _render_nodes(nodes, bindings, out, missing)

    required = set(required_fields)
    return RenderResult(
        text="".join(out),
        missing=tuple(missing),
        missing_required=tuple(name for name in missing if name in required),
    )


def _render_nodes(nodes: Sequence[Node], bindings: FieldBindings, out: List[str], missing: List[str]) -> None:
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.value)
        elif isinstance(node, Placeholder):
            value = bindings.value(node.name)
            if value is None or value == "":
                if node.name not in missing:
                    missing.append(node.name)
                continue
            out.append(value)
        elif isinstance(node, Conditional):
            if bindings.is_set(node.flag):
                _render_nodes(node.children, bindings, out, missing)
