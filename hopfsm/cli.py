#!/usr/bin/env python3
"""
Command-line interface for driving state machines defined in YAML
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from prometheus_client import CollectorRegistry, generate_latest

from .config import (
    ActionRegistry,
    MachineParser,
    log_level_from_env,
    metrics_enabled,
)
from .errors import InvalidConfigurationError, NoPathFoundError
from .sinks import CompositeSink, LoggingSink, PrometheusSink


def _print_action(name):
    def action():
        print(f"action: {name}")
    return action


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Drive a shortest-path state machine defined in a YAML file"
    )

    parser.add_argument(
        "definition",
        type=Path,
        help="State machine definition YAML file"
    )

    parser.add_argument(
        "-s", "--start",
        help="Initial state (default: initial_state of the definition)"
    )

    parser.add_argument(
        "-g", "--go",
        action="append",
        default=[],
        metavar="STATE",
        help="State to go to; may be given multiple times"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the routes, do not execute actions"
    )

    parser.add_argument(
        "-f", "--format",
        choices=["console", "json"],
        default="console",
        help="Output format (default: %(default)s)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else log_level_from_env()
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        definition = MachineParser.from_file(args.definition)
        start = args.start if args.start is not None else definition.initial_state

        sink = LoggingSink(level=logging.INFO)
        registry = None
        if metrics_enabled():
            registry = CollectorRegistry()
            sink = CompositeSink(sink, PrometheusSink(definition.name, definition.states, registry=registry))

        builder = definition.to_builder(ActionRegistry(default=_print_action), sink=sink)
        machine = builder.start_at(start)
    except (OSError, ValueError) as e:
        # InvalidConfigurationError is a ValueError, as are invalid metric names
        print(f"Error loading definition: {e}", file=sys.stderr)
        return 1

    routes = []
    try:
        for target in args.go:
            route = machine.find_path(target)
            if route is None:
                raise NoPathFoundError(machine.current_state, target)
            routes.append(route)
            if args.dry_run:
                machine.set_state(target)
            else:
                machine.go(target)
    except InvalidConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except NoPathFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    metrics = generate_latest(registry).decode() if registry is not None else None

    if args.format == "json":
        document = {
            "machine": machine.name,
            "start": str(start),
            "routes": [[str(s) for s in route] for route in routes],
            "current_state": str(machine.current_state),
            "transitions_done": machine.transitions_done,
        }
        if metrics is not None:
            document["metrics"] = metrics
        print(json.dumps(document, indent=2))
    else:
        for route in routes:
            print(" -> ".join(str(s) for s in route))
        print(f"Current state: {machine.current_state}")
        print(f"Transitions done: {machine.transitions_done}")
        if metrics is not None:
            print(metrics, end="")

    return 0


if __name__ == "__main__":
    sys.exit(main())
