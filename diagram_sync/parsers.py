"""
Best-effort parsers from diagram text to a GraphModel.

All four languages share one skeleton (`parse_text`) driven by a per-language
`Grammar` table:
- Split into trimmed, non-empty lines
- Skip header/directive/comment lines
- Try the connection pattern, then standalone node declarations
- Register every new token as a node at the next grid slot
- Silently ignore anything else

Only a pragmatic subset of each language is recognized. Identifiers are word
characters only; patterns match whole lines, so any other character in an
identifier position makes the line unrecognized.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .layout import grid_position
from .models import Edge, EngineTag, GraphModel, Node

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Grammar:
    """
    Pattern table for one language.

    `connection` uses the named groups source, target and optionally
    source_label, target_label, label (edge label) and attrs (an attribute
    list holding the edge label). Each `declarations` pattern uses id and
    optionally label. `label_attribute` lines relabel already-discovered
    nodes after all lines have been read.
    """
    engine: EngineTag
    skip: re.Pattern
    connection: re.Pattern
    declarations: tuple[re.Pattern, ...] = ()
    label_attribute: Optional[re.Pattern] = None


# Matches label="..." inside a graphviz attribute list
LABEL_ATTR = re.compile(r'\blabel\s*=\s*"(?P<label>[^"]+)"')

PARTICIPANT_KEYWORDS = r"(?:participant|actor|boundary|control|entity|database|collections|queue)"


MERMAID = Grammar(
    engine=EngineTag.MERMAID,
    skip=re.compile(r"(?:flowchart|graph)\b|%%"),
    connection=re.compile(
        r"(?P<source>\w+)(?:\[(?P<source_label>[^\]]+)\])?"
        r"\s*-->\s*(?:\|(?P<label>[^|]*)\|\s*)?"
        r"(?P<target>\w+)(?:\[(?P<target_label>[^\]]+)\])?\s*;?"
    ),
    declarations=(
        re.compile(r"(?P<id>\w+)\[(?P<label>[^\]]+)\]\s*;?"),
    ),
)

GRAPHVIZ = Grammar(
    engine=EngineTag.GRAPHVIZ,
    skip=re.compile(r"(?:strict\s+)?(?:di)?graph\b|[{}]|//|#|(?:node|edge)\s*\["),
    connection=re.compile(
        r"(?P<source>\w+)\s*->\s*(?P<target>\w+)\s*(?:\[(?P<attrs>[^\]]*)\])?\s*;?"
    ),
    label_attribute=re.compile(r"(?P<id>\w+)\s*\[(?P<attrs>[^\]]*)\]\s*;?"),
)

# d2 keywords that set diagram or shape properties rather than declare a node
D2_KEYWORDS = (
    "direction", "title", "label", "vars", "classes", "class", "shape", "style",
    "icon", "near", "tooltip", "link", "width", "height", "layers", "scenarios", "steps",
)

D2 = Grammar(
    engine=EngineTag.D2,
    skip=re.compile(r"#"),
    connection=re.compile(
        r"(?P<source>\w+)\s*->\s*(?P<target>\w+)(?:\s*:\s*(?P<label>.*))?"
    ),
    declarations=(
        # `id: label`, but not a keyword line or a `container: {` block opener
        re.compile(
            r"(?!(?:" + "|".join(D2_KEYWORDS) + r")\b)"
            r"(?P<id>\w+)\s*:\s*(?P<label>[^{\s].*)"
        ),
    ),
)

PLANTUML = Grammar(
    engine=EngineTag.PLANTUML,
    skip=re.compile(r"@(?:start|end)|'"),
    connection=re.compile(
        r"(?P<source>\w+)\s*-{1,2}>\s*(?P<target>\w+)(?:\s*:\s*(?P<label>.*))?"
    ),
    declarations=(
        re.compile(PARTICIPANT_KEYWORDS + r'\s+"(?P<label>[^"]+)"\s+as\s+(?P<id>\w+)'),
        re.compile(PARTICIPANT_KEYWORDS + r"\s+(?P<id>\w+)"),
    ),
)


def _lines(text: str) -> list[str]:
    return [stripped for stripped in (line.strip() for line in text.splitlines()) if stripped]


def _edge_label(match: re.Match) -> Optional[str]:
    groups = match.groupdict()
    label = groups.get("label")
    if label is None and groups.get("attrs"):
        attr = LABEL_ATTR.search(groups["attrs"])
        if attr:
            label = attr.group("label")
    return label or None


def parse_text(text: str, grammar: Grammar) -> GraphModel:
    """
    Parse diagram text with the given grammar.

    Never raises for malformed text; unrecognized lines are skipped and a
    text without recognizable lines yields an empty graph.

    Args:
        text: Raw diagram source
        grammar: Pattern table of the source language

    Returns:
        GraphModel with nodes in first-discovery order
    """
    nodes: dict[str, Node] = {}
    edges: dict[str, Edge] = {}
    relabels: list[tuple[str, str]] = []

    def register(token: str, label: Optional[str] = None):
        if token not in nodes:
            nodes[token] = Node(
                id=token,
                label=label or token,
                position=grid_position(len(nodes)),
            )

    for line in _lines(text):
        if grammar.skip.match(line):
            continue

        match = grammar.connection.fullmatch(line)
        if match:
            groups = match.groupdict()
            source, target = groups["source"], groups["target"]
            register(source, groups.get("source_label"))
            register(target, groups.get("target_label"))

            edge = Edge(
                id=f"{source}-{target}",
                source=source,
                target=target,
                label=_edge_label(match),
            )
            if edge.id in edges:
                logger.debug("Edge %s redefined; keeping the last definition", edge.id)
            edges[edge.id] = edge
            continue

        if grammar.label_attribute is not None:
            match = grammar.label_attribute.fullmatch(line)
            if match:
                attr = LABEL_ATTR.search(match.group("attrs"))
                if attr:
                    relabels.append((match.group("id"), attr.group("label")))
                continue

        for pattern in grammar.declarations:
            match = pattern.fullmatch(line)
            if match:
                register(match.group("id"), match.groupdict().get("label"))
                break
        else:
            logger.debug("Skipping unrecognized %s line: %r", grammar.engine.value, line)

    # Label attributes apply regardless of where the declaration sits
    for node_id, label in relabels:
        if node_id in nodes:
            nodes[node_id] = nodes[node_id].model_copy(update={"label": label})

    return GraphModel(nodes=list(nodes.values()), edges=list(edges.values()))


def parse_mermaid(text: str) -> GraphModel:
    """Parse a mermaid flowchart: `A[Label] --> B[Label]`."""
    return parse_text(text, MERMAID)


def parse_graphviz(text: str) -> GraphModel:
    """Parse a DOT digraph: `A -> B;` plus `A [label="..."]` relabel lines."""
    return parse_text(text, GRAPHVIZ)


def parse_d2(text: str) -> GraphModel:
    """Parse d2 connections: `A -> B: label`."""
    return parse_text(text, D2)


def parse_plantuml(text: str) -> GraphModel:
    """Parse a PlantUML sequence diagram: `A -> B: message`."""
    return parse_text(text, PLANTUML)
