#!/usr/bin/env python3
"""
gqlexec CLI - Main entry point.

Usage:
    gqlexec check schema.yaml                                   # Validate a schema file
    gqlexec execute --schema app.schema:executor --document q.json
    gqlexec serve --schema app.schema:executor --port 8000     # Serve over HTTP

--schema accepts "module:attr" naming an Executor or a SchemaRegistry, or
the path of a YAML schema file.
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from ..config import ExecutorConfig, load_config
from ..core.compiler import load_schema_file
from ..core.errors import SchemaError
from ..core.query_types import Document
from ..core.registry import SchemaRegistry
from ..runtime.executor import Executor

logger = logging.getLogger(__name__)


def load_target(target: str) -> Any:
    """Import "module:attr", or compile a YAML schema file."""
    if target.endswith((".yaml", ".yml")):
        return load_schema_file(target)

    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Expected 'module:attr' or a .yaml file, got '{target}'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ValueError(f"Module '{module_name}' has no attribute '{attr}'")


def load_executor(target: str, config: Optional[ExecutorConfig] = None) -> Executor:
    """Executor for a --schema target."""
    value = load_target(target)
    if isinstance(value, Executor):
        if config is not None:
            value.config = config
        return value
    if isinstance(value, SchemaRegistry):
        return Executor(value, config=config)
    raise ValueError(f"'{target}' is neither an Executor nor a SchemaRegistry")


def _read_json(path: Optional[str]) -> Any:
    if path is None:
        return None
    return json.loads(Path(path).read_text())


def cmd_check(args: argparse.Namespace) -> int:
    """Compile a schema file and print a summary."""
    try:
        schema = load_schema_file(args.schema)
    except SchemaError as e:
        print(f"Error: {e}")
        return 1

    roots = {
        "query": schema.query_type,
        "mutation": schema.mutation_type,
        "subscription": schema.subscription_type,
    }
    print(f"Schema OK: {len(schema.types)} types")
    for operation, root in roots.items():
        print(f"  {operation}: {root.name if root else '-'}")
    return 0


def cmd_execute(args: argparse.Namespace) -> int:
    """Execute one operation and print the response envelope."""
    config = load_config(args.config)
    try:
        executor = load_executor(args.schema, config)
        document = Document.model_validate(_read_json(args.document))
        variables = _read_json(args.variables)
    except (ValueError, ImportError, OSError, SchemaError) as e:
        print(f"Error: {e}")
        return 1

    result = asyncio.run(
        executor.execute(
            document,
            variables=variables,
            operation_name=args.operation,
        )
    )
    print(result.to_json(indent=2))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Serve an executor over HTTP."""
    import uvicorn

    from ..api import create_app

    config = load_config(args.config)
    try:
        executor = load_executor(args.schema, config)
    except (ValueError, ImportError, SchemaError) as e:
        print(f"Error: {e}")
        return 1

    logger.info(f"Serving {args.schema} on http://{args.host}:{args.port}{args.path}")
    uvicorn.run(create_app(executor, path=args.path), host=args.host, port=args.port)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="gqlexec",
        description="gqlexec - GraphQL query execution engine"
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check
    check_parser = subparsers.add_parser("check", help="Validate a YAML schema file")
    check_parser.add_argument("schema", help="Path to schema YAML")

    # execute
    execute_parser = subparsers.add_parser("execute", help="Execute an operation")
    execute_parser.add_argument("--schema", "-s", required=True, help="module:attr or schema YAML")
    execute_parser.add_argument("--document", "-d", required=True, help="Document AST as JSON file")
    execute_parser.add_argument("--variables", "-v", help="Variables as JSON file")
    execute_parser.add_argument("--operation", "-o", help="Operation name")
    execute_parser.add_argument("--config", "-c", help="Config file (default: gqlexec.yaml)")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Serve over HTTP")
    serve_parser.add_argument("--schema", "-s", required=True, help="module:attr or schema YAML")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind host")
    serve_parser.add_argument("--port", "-p", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--path", default="/graphql", help="Endpoint path")
    serve_parser.add_argument("--config", "-c", help="Config file (default: gqlexec.yaml)")

    return parser


def app(args: Optional[List[str]] = None) -> int:
    """Main CLI application."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=getattr(logging, parsed.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not parsed.command:
        parser.print_help()
        return 0

    commands = {
        "check": cmd_check,
        "execute": cmd_execute,
        "serve": cmd_serve,
    }

    handler = commands.get(parsed.command)
    if handler:
        return handler(parsed)

    parser.print_help()
    return 1


def main() -> None:
    """Entry point for CLI."""
    sys.exit(app())


if __name__ == "__main__":
    main()
