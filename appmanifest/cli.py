# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""Command-line interface for appmanifest.

This module provides the main CLI entry point for the appmanifest tool,
offering commands to check and inspect service manifests.

Commands:

    validate: Validate a manifest for one or every environment
    show: Print the effective manifest for an environment as YAML
    envs: List the environments a manifest overrides

MANIFEST arguments accept either a path to a manifest file or the name of a
workload in the enclosing ``copilot/`` workspace.

Example:
    Validate every environment of a service:
        ```bash
        $ appmanifest validate copilot/api/manifest.yml
        ```

    Show the effective manifest for prod:
        ```bash
        $ appmanifest show api --env prod
        ```

    Override the application name used for interpolation:
        ```bash
        $ appmanifest show api --env test --app shop
        ```

    Enable debug output:
        ```bash
        $ appmanifest show api --env prod --debug
        ```

Exit Codes:

- 0: Success
- 1: Error (missing file, invalid manifest, interpolation or merge failure)

Note:
    The CLI uses argparse for command parsing (stdlib, zero dependencies).
    Each command has its own handler function (cmd_<command>).
    Verbose mode shows full tracebacks on errors for debugging.
    Debug mode implies verbose mode and shows the parsed document.

"""

from __future__ import annotations

import argparse
import sys

from appmanifest import __version__
from appmanifest.core import find_manifest, list_environments, render_workload
from appmanifest.exceptions import ManifestError
from appmanifest.logging import get_logger, set_global_logger
from appmanifest.validation import validate_manifest


def _report_error(err: Exception, args: argparse.Namespace) -> int:
    print(f"Error: {err}")
    if getattr(args, "verbose", False) or getattr(args, "debug", False):
        import traceback

        traceback.print_exc()
    return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'appmanifest validate' command.

    Args:
        args: Parsed command-line arguments containing the manifest, the
            optional environment and application names, and the verbose flag.

    Returns:
        Exit code (0 for a valid manifest, 1 for invalid).
    """
    logger = get_logger(verbose=args.verbose, debug=False)
    set_global_logger(logger)

    try:
        path = find_manifest(args.manifest)
    except ManifestError as err:
        return _report_error(err, args)

    print(f"Validating manifest: {path}")
    print()

    result = validate_manifest(path, env_name=args.env, app_name=args.app)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Manifest:     {result.manifest_path}")
    print(f"Environment:  {result.environment or 'all'}")
    print(f"Status:       {result.status.upper()}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Manifest is valid!")
        return 0
    print()
    print(f"[FAILED] Manifest validation failed with {len(result.errors)} error(s).")
    return 1


def cmd_show(args: argparse.Namespace) -> int:
    """Handler for 'appmanifest show' command.

    Prints the effective manifest for the selected environment as YAML.

    Args:
        args: Parsed command-line arguments containing the manifest, the
            optional environment and application names, and flags.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    try:
        path = find_manifest(args.manifest)
        result = render_workload(path, env_name=args.env, app_name=args.app)
    except ManifestError as err:
        return _report_error(err, args)

    if args.verbose or args.debug:
        print()
        print("=" * 70)
        print("EFFECTIVE MANIFEST")
        print("=" * 70)
        print(f"Manifest:     {result.manifest_path}")
        print(f"Application:  {result.application or '-'}")
        print(f"Environment:  {result.environment or 'base'}")
        print("=" * 70)
    print(result.yaml, end="")
    return 0


def cmd_envs(args: argparse.Namespace) -> int:
    """Handler for 'appmanifest envs' command.

    Args:
        args: Parsed command-line arguments containing the manifest.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    try:
        path = find_manifest(args.manifest)
        names = list_environments(path)
    except ManifestError as err:
        return _report_error(err, args)

    if not names:
        print(f"No environment overrides in {path}")
        return 0
    for name in names:
        print(name)
    return 0


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "manifest",
        help="Path to a manifest file, or a workload name in the workspace",
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Environment to resolve (default: base configuration)",
    )
    parser.add_argument(
        "--app",
        default=None,
        help="Application name for interpolation (default: from copilot/.workspace)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands registered."""
    parser = argparse.ArgumentParser(
        prog="appmanifest",
        description="appmanifest - validate and inspect service deployment manifests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"appmanifest {__version__}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate a manifest for one or every environment",
        description="Check a manifest for decode, merge and schema errors.",
    )
    _add_target_arguments(parser_validate)
    parser_validate.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show validation progress and details",
    )
    parser_validate.set_defaults(func=cmd_validate)

    # 'show' command
    parser_show = subparsers.add_parser(
        "show",
        help="Print the effective manifest for an environment",
        description="Interpolate, decode and resolve a manifest, then print it as YAML.",
    )
    _add_target_arguments(parser_show)
    parser_show.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser_show.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )
    parser_show.set_defaults(func=cmd_show)

    # 'envs' command
    parser_envs = subparsers.add_parser(
        "envs",
        help="List the environments a manifest overrides",
        description="Print the names under the manifest's 'environments' key.",
    )
    parser_envs.add_argument(
        "manifest",
        help="Path to a manifest file, or a workload name in the workspace",
    )
    parser_envs.set_defaults(func=cmd_envs)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the appmanifest CLI.

    This function is registered as the 'appmanifest' console script in
    pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
