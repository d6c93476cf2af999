"""
Engine registry - one {parse, generate} pair per diagram language.

Callers resolve an engine once (usually in the SyncController) and then use
its two functions; an unknown tag raises UnsupportedEngine.
"""

from typing import Callable, NamedTuple, Union

from .exceptions import UnsupportedEngine
from .generator import generate_d2, generate_graphviz, generate_mermaid, generate_plantuml
from .models import EngineTag, GraphModel
from .parsers import parse_d2, parse_graphviz, parse_mermaid, parse_plantuml


class Engine(NamedTuple):
    """The capability set every diagram language provides."""
    tag: EngineTag
    parse: Callable[[str], GraphModel]
    generate: Callable[[GraphModel], str]


ENGINES: dict[EngineTag, Engine] = {
    EngineTag.MERMAID: Engine(EngineTag.MERMAID, parse_mermaid, generate_mermaid),
    EngineTag.PLANTUML: Engine(EngineTag.PLANTUML, parse_plantuml, generate_plantuml),
    EngineTag.GRAPHVIZ: Engine(EngineTag.GRAPHVIZ, parse_graphviz, generate_graphviz),
    EngineTag.D2: Engine(EngineTag.D2, parse_d2, generate_d2),
}


def resolve_engine_tag(engine: Union[EngineTag, str]) -> EngineTag:
    """Coerce a tag or its string value to an EngineTag."""
    try:
        return EngineTag(engine)
    except ValueError:
        raise UnsupportedEngine(engine) from None


def get_engine(engine: Union[EngineTag, str]) -> Engine:
    tag = resolve_engine_tag(engine)
    if tag not in ENGINES:
        raise UnsupportedEngine(engine)
    return ENGINES[tag]


def parse(text: str, engine: Union[EngineTag, str]) -> GraphModel:
    """Parse `text` written in `engine`'s language."""
    return get_engine(engine).parse(text)


def generate(model: GraphModel, engine: Union[EngineTag, str]) -> str:
    """Generate `engine` source text for `model`."""
    return get_engine(engine).generate(model)
