"""
Diagram text generation from a GraphModel.

Each emitter walks nodes then edges in their current order. Output is not
meant to reproduce the text a graph was parsed from, only an equivalent
diagram in the target language.

PlantUML edge lines use node *labels* instead of ids. This is lossy:
re-parsing generated PlantUML derives ids from labels, so two nodes sharing
a label merge, and a label with non-word characters yields an unparseable
line.
"""

from .models import Edge, GraphModel


def _mermaid_edge(edge: Edge) -> str:
    if edge.label:
        return f"  {edge.source} -->|{edge.label}| {edge.target}"
    return f"  {edge.source} --> {edge.target}"


def generate_mermaid(model: GraphModel) -> str:
    if not model.nodes:
        return ""
    lines = ["flowchart LR"]
    lines += [f"  {node.id}[{node.label}]" for node in model.nodes]
    lines += [_mermaid_edge(edge) for edge in model.edges]
    return "\n".join(lines) + "\n"


def generate_graphviz(model: GraphModel) -> str:
    if not model.nodes:
        return ""
    lines = ["digraph G {"]
    lines += [f'  {node.id} [label="{node.label}"];' for node in model.nodes]
    for edge in model.edges:
        if edge.label:
            lines.append(f'  {edge.source} -> {edge.target} [label="{edge.label}"];')
        else:
            lines.append(f"  {edge.source} -> {edge.target};")
    lines.append("}")
    return "\n".join(lines)


def generate_d2(model: GraphModel) -> str:
    if not model.nodes:
        return ""
    lines = [f"{node.id}: {node.label}" for node in model.nodes]
    for edge in model.edges:
        suffix = f": {edge.label}" if edge.label else ""
        lines.append(f"{edge.source} -> {edge.target}{suffix}")
    return "\n".join(lines) + "\n"


def generate_plantuml(model: GraphModel) -> str:
    if not model.nodes:
        return ""
    labels = {node.id: node.label for node in model.nodes}
    lines = ["@startuml"]
    for edge in model.edges:
        source = labels.get(edge.source) or edge.source
        target = labels.get(edge.target) or edge.target
        suffix = f": {edge.label}" if edge.label else ""
        lines.append(f"{source} -> {target}{suffix}")
    lines.append("@enduml")
    return "\n".join(lines)
