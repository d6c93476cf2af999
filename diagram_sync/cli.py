#!/usr/bin/env python3
"""diagram-sync CLI - convert between diagram text and graph JSON offline."""

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import API_HOST, API_PORT
from .engines import generate, parse
from .exceptions import DiagramSyncError
from .logger import setup_logging
from .models import DiagramData, EngineTag, GraphModel
from .snapshot import serialize_snapshot
from .validation import validate_graph, validation_summary

ENGINE_CHOICES = [e.value for e in EngineTag]


def _json_out(data, status: int = 0):
    print(json.dumps(data, indent=2))
    sys.exit(status)


def _error_out(message: str):
    _json_out({"status": "error", "error": message}, status=1)


def _read_input(path):
    """Read a file, or stdin when the path is missing or '-'."""
    if path in (None, "-"):
        return sys.stdin.read()
    try:
        return Path(path).read_text()
    except OSError as e:
        _error_out(f"Cannot read {path}: {e}")


def _read_graph(path) -> GraphModel:
    text = _read_input(path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        _error_out(f"Graph input is not valid JSON: {e}")
    # Accept a bare graph or a snapshot envelope
    if isinstance(data, dict) and isinstance(data.get("diagram"), dict):
        data = data["diagram"]
    if not isinstance(data, dict):
        _error_out("Graph input must be a JSON object with 'nodes' and 'edges'")
    try:
        return GraphModel.model_validate({
            "nodes": data.get("nodes") or [],
            "edges": data.get("edges") or [],
        })
    except ValidationError as e:
        _error_out(f"Graph input does not match the schema: {e}")


# ── Commands ─────────────────────────────────────────────────────────────────

def cmd_parse(args):
    graph = parse(_read_input(args.file), args.engine)
    _json_out(graph.to_json_dict())


def cmd_generate(args):
    code = generate(_read_graph(args.file), args.engine)
    sys.stdout.write(code)
    if code and not code.endswith("\n"):
        sys.stdout.write("\n")


def cmd_convert(args):
    graph = parse(_read_input(args.file), args.source)
    code = generate(graph, args.target)
    sys.stdout.write(code)
    if code and not code.endswith("\n"):
        sys.stdout.write("\n")


def cmd_export(args):
    code = _read_input(args.file)
    graph = parse(code, args.engine)
    diagram = DiagramData(engine=args.engine, code=code, nodes=graph.nodes, edges=graph.edges)
    snapshot = serialize_snapshot(diagram)
    if args.output:
        Path(args.output).write_text(snapshot)
        _json_out({"status": "ok", "file_path": args.output})
    else:
        print(snapshot)


def cmd_validate(args):
    graph = parse(_read_input(args.file), args.engine)
    issues = validate_graph(graph)
    _json_out({
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues),
    })


def cmd_serve(args):
    from .api import run
    run(host=args.host, port=args.port)


# ── Main ─────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Diagram text <-> graph converter")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Parse diagram text to graph JSON")
    p.add_argument("--engine", required=True, choices=ENGINE_CHOICES)
    p.add_argument("--file", default=None)

    p = sub.add_parser("generate", help="Generate diagram text from graph JSON")
    p.add_argument("--engine", required=True, choices=ENGINE_CHOICES)
    p.add_argument("--file", default=None)

    p = sub.add_parser("convert", help="Parse text in one engine and generate another")
    p.add_argument("--from", dest="source", required=True, choices=ENGINE_CHOICES)
    p.add_argument("--to", dest="target", required=True, choices=ENGINE_CHOICES)
    p.add_argument("--file", default=None)

    p = sub.add_parser("export", help="Write a snapshot file for diagram text")
    p.add_argument("--engine", required=True, choices=ENGINE_CHOICES)
    p.add_argument("--file", default=None)
    p.add_argument("--output", default=None)

    p = sub.add_parser("validate", help="Parse diagram text and report graph issues")
    p.add_argument("--engine", required=True, choices=ENGINE_CHOICES)
    p.add_argument("--file", default=None)

    p = sub.add_parser("serve", help="Run the HTTP/WebSocket backend")
    p.add_argument("--host", default=API_HOST)
    p.add_argument("--port", type=int, default=API_PORT)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    cmd_map = {
        "parse": cmd_parse,
        "generate": cmd_generate,
        "convert": cmd_convert,
        "export": cmd_export,
        "validate": cmd_validate,
        "serve": cmd_serve,
    }
    try:
        cmd_map[args.command](args)
    except DiagramSyncError as e:
        _error_out(str(e))


if __name__ == "__main__":
    main()
