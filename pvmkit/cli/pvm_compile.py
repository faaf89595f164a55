#!/usr/bin/env python3
import argparse
import json
import sys
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Set, TypeVar

import pvmkit
from pvmkit.compiler.input_bundle import FileInput, FilesystemInputBundle
from pvmkit.compiler.settings import PVMKIT_TRACEBACK_LIMIT, Settings
from pvmkit.warnings import warnings_filter

T = TypeVar("T")

format_options_help = """Format to print, one or more of:
module (default)   - Generated contract module
storage            - Storage accessors of the contract
deploy             - Deploy entry point
dispatch           - Method table and call entry point
proxy              - Proxy classes for calling the contract (and its interfaces)
events             - Event topics and fields
method_identifiers - Dictionary of method name to selector
layout             - Storage layout of the contract
interface          - `@interface` declaration of the contract
metadata           - Contract metadata (intended for use by tooling developers)
combined_json      - module, method_identifiers, layout, events and metadata
                     combined as single JSON output
"""

combined_json_outputs = ["module", "method_identifiers", "layout", "events", "metadata"]


def _parse_cli_args():
    return _parse_args(sys.argv[1:])


def _cli_helper(f, output_formats, compiled):
    if output_formats == ("combined_json",):
        print(json.dumps(compiled), file=f)
        return

    for contract_data in compiled.values():
        for data in contract_data.values():
            if isinstance(data, (list, dict)):
                print(json.dumps(data), file=f)
            else:
                print(data, file=f, end="" if data.endswith("\n") else "\n")


def _parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Contract generator for the Polkadot virtual machine",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("input_files", help="Contract modules to compile", nargs="+")
    parser.add_argument("--version", action="version", version=pvmkit.__version__)
    parser.add_argument("-f", help=format_options_help, default="module", dest="format")
    parser.add_argument("--name", help="Override the contract name", dest="contract_name")
    parser.add_argument("--debug", help="Compile in debug mode", action="store_true")
    parser.add_argument(
        "--traceback-limit",
        help="Set the traceback limit for error messages reported by the compiler",
        type=int,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        help="Turn on compiler verbose output. "
        "Currently an alias for --traceback-limit but "
        "may add more information in the future",
        action="store_true",
    )
    parser.add_argument(
        "-W",
        help="Control warnings: `error` turns them into errors, `none` hides them",
        choices=["error", "none"],
        dest="warnings_control",
    )
    parser.add_argument(
        "--path", "-p", help="Set the root path for contract files", action="append", dest="paths"
    )
    parser.add_argument("-o", help="Set the output path", dest="output_path")

    args = parser.parse_args(argv)

    if args.traceback_limit is not None:
        sys.tracebacklimit = args.traceback_limit
    elif PVMKIT_TRACEBACK_LIMIT is not None:
        sys.tracebacklimit = PVMKIT_TRACEBACK_LIMIT
    elif args.verbose:
        sys.tracebacklimit = 1000
    else:
        # Python usually defaults sys.tracebacklimit to 1000. We use a default
        # setting of zero so error printouts only include information about where
        # an error occurred in the contract source.
        sys.tracebacklimit = 0

    output_formats = tuple(uniq(args.format.split(",")))

    settings = Settings()
    if args.contract_name is not None:
        settings.contract_name = args.contract_name
    if args.debug:
        settings.debug = True

    if args.verbose:
        print(f"cli specified: `{settings}`", file=sys.stderr)

    with warnings_filter(args.warnings_control):
        compiled = compile_files(args.input_files, output_formats, args.paths, settings)

    if args.output_path:
        with open(args.output_path, "w") as f:
            _cli_helper(f, output_formats, compiled)
    else:
        f = sys.stdout
        _cli_helper(f, output_formats, compiled)


def uniq(seq: Iterable[T]) -> Iterator[T]:
    """
    Yield unique items in ``seq`` in order.
    """
    seen: Set[T] = set()

    for x in seq:
        if x in seen:
            continue

        seen.add(x)
        yield x


def exc_handler(contract_path: str, exception: Exception) -> None:
    print(f"Error compiling: {contract_path}")
    raise exception


def get_search_paths(paths: Optional[list] = None) -> list:
    # the last search path has the highest precedence
    paths = paths or []
    search_paths = [Path(".")]

    for p in paths:
        path = Path(p).resolve(strict=True)
        search_paths.append(path)

    return search_paths


def compile_files(
    input_files: list,
    output_formats,
    paths: Optional[list] = None,
    settings: Optional[Settings] = None,
) -> dict:
    search_paths = get_search_paths(paths)
    input_bundle = FilesystemInputBundle(search_paths)

    show_version = False
    if "combined_json" in output_formats:
        if len(output_formats) > 1:
            raise ValueError("If using combined_json it must be the only output format requested")
        output_formats = combined_json_outputs
        show_version = True

    if settings is not None and settings.contract_name is not None and len(input_files) > 1:
        raise ValueError("`--name` can only be used with a single input file")

    ret: dict[Any, Any] = {}
    if show_version:
        ret["version"] = pvmkit.__version__

    for file_name in input_files:
        file_path = Path(file_name)
        file = input_bundle.load_file(file_path)
        assert isinstance(file, FileInput)  # mypy hint

        output = pvmkit.compile_from_file_input(
            file, settings=settings, output_formats=output_formats, exc_handler=exc_handler
        )

        ret[file_name] = output

    return ret


if __name__ == "__main__":
    _parse_args(sys.argv[1:])
