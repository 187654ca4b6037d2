"""CLI entry point dumping the committed metadata graph.

Usage::

    tyx-describe myapp.apis myapp.services
    tyx-describe --verbose myapp
"""

import importlib
import logging
import sys

import yaml

from tyx.routes import describe


def main(argv: list[str] | None = None) -> None:
    arguments = list(sys.argv[1:] if argv is None else argv)
    verbose = "--verbose" in arguments
    modules = [argument for argument in arguments if argument != "--verbose"]
    if not modules:
        raise SystemExit("Usage: tyx-describe [--verbose] <module...>")

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    for module in modules:
        importlib.import_module(module)

    print(yaml.safe_dump(describe(), sort_keys=False), end="")
