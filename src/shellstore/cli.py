"""shellstore CLI - bucket maintenance and read-only inspection.

Usage:
    shellstore buckets ensure
    shellstore buckets wipe [--delete]
    shellstore shells list
    shellstore submodels list
    shellstore submodels resolve --id-short <name>

Connection settings are read from the SHELLSTORE_S3_* environment variables
(see shellstore.config). Output is JSON on stdout with sorted keys; logs go to
stderr.

Exit codes:
    0: Success
    1: Store error / Internal error
    2: Configuration error / Not found
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from shellstore.component import create_repositories, ensure_buckets
from shellstore.config import S3ConfigError, S3Settings, load_s3_settings
from shellstore.documents.deleter import delete_bucket_if_exists, wipe_bucket
from shellstore.documents.index import resolve_id_short
from shellstore.storage.errors import BucketNamingError, ObjectStorageError
from shellstore.storage.object_store import ObjectStore
from shellstore.storage.s3_store import S3ObjectStore

logger = logging.getLogger(__name__)


def _output_json(data: dict[str, Any]) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _make_error_result(code: str, message: str) -> dict[str, Any]:
    return {"error": {"code": code, "message": message}, "pass": False}


def _open_store(settings: S3Settings) -> ObjectStore:
    """Build the gateway for the configured endpoint."""
    return S3ObjectStore.from_settings(settings)


def cmd_buckets_ensure(args: argparse.Namespace, settings: S3Settings) -> int:
    store = _open_store(settings)
    created = ensure_buckets(store, settings)
    buckets = {name: "created" if new else "existing" for name, new in created.items()}
    _output_json({"buckets": buckets, "pass": True})
    return 0


def cmd_buckets_wipe(args: argparse.Namespace, settings: S3Settings) -> int:
    """Wipe both buckets; with --delete, remove the buckets as well."""
    store = _open_store(settings)
    result: dict[str, Any] = {}
    for bucket in (settings.shell_bucket, settings.submodel_bucket):
        if args.delete:
            result[bucket] = "deleted" if delete_bucket_if_exists(store, bucket) else "missing"
        elif store.bucket_exists(bucket):
            result[bucket] = wipe_bucket(store, bucket)
        else:
            result[bucket] = "missing"
    _output_json({"buckets": result, "pass": True})
    return 0


def cmd_shells_list(args: argparse.Namespace, settings: S3Settings) -> int:
    repositories = create_repositories(settings, _open_store(settings))
    shells = []
    for identifier in sorted(repositories.shells.identifiers()):
        view = repositories.shells.get_view(identifier)
        shell = view.get_shell()
        shells.append(
            {
                "identifier": identifier,
                "idShort": shell.id_short,
                "submodels": sorted(view.submodel_ids()),
            }
        )
    _output_json({"pass": True, "shells": shells})
    return 0


def cmd_submodels_list(args: argparse.Namespace, settings: S3Settings) -> int:
    repositories = create_repositories(settings, _open_store(settings))
    submodels = [
        {"identifier": submodel.identifier, "idShort": submodel.id_short}
        for submodel in repositories.submodels.get_all()
    ]
    submodels.sort(key=lambda entry: entry["identifier"])
    _output_json({"pass": True, "submodels": submodels})
    return 0


def cmd_submodels_resolve(args: argparse.Namespace, settings: S3Settings) -> int:
    """Resolve a short name by scanning submodel metadata.

    Exit codes:
        0: resolved
        2: no submodel carries the short name
    """
    store = _open_store(settings)
    identifier = resolve_id_short(store, settings.submodel_bucket, args.id_short)
    _output_json(
        {
            "identifier": identifier,
            "idShort": args.id_short,
            "pass": identifier is not None,
        }
    )
    return 0 if identifier is not None else 2


COMMAND_DISPATCH: dict[tuple[str, str], Any] = {
    ("buckets", "ensure"): cmd_buckets_ensure,
    ("buckets", "wipe"): cmd_buckets_wipe,
    ("shells", "list"): cmd_shells_list,
    ("submodels", "list"): cmd_submodels_list,
    ("submodels", "resolve"): cmd_submodels_resolve,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="shellstore",
        description="shellstore - S3 storage for shells and submodels",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for stderr output (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # buckets command with ensure and wipe subcommands
    buckets_parser = subparsers.add_parser("buckets", help="Bucket maintenance")
    buckets_subparsers = buckets_parser.add_subparsers(dest="subcommand", help="Bucket subcommands")
    buckets_subparsers.add_parser("ensure", help="Create missing versioned buckets")
    wipe_parser = buckets_subparsers.add_parser(
        "wipe",
        help="Remove every object and version from both buckets",
    )
    wipe_parser.add_argument(
        "--delete",
        action="store_true",
        default=False,
        help="Delete the buckets after wiping them",
    )

    # shells command
    shells_parser = subparsers.add_parser("shells", help="Shell inspection")
    shells_subparsers = shells_parser.add_subparsers(dest="subcommand", help="Shell subcommands")
    shells_subparsers.add_parser("list", help="List shells with their attached submodels")

    # submodels command
    submodels_parser = subparsers.add_parser("submodels", help="Submodel inspection")
    submodels_subparsers = submodels_parser.add_subparsers(
        dest="subcommand",
        help="Submodel subcommands",
    )
    submodels_subparsers.add_parser("list", help="List stored submodels")
    resolve_parser = submodels_subparsers.add_parser(
        "resolve",
        help="Resolve a submodel idShort to its identifier",
    )
    resolve_parser.add_argument(
        "--id-short",
        required=True,
        metavar="NAME",
        help="Short name to resolve",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Store error / Internal error (unexpected)
        2: Configuration error / Not found
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    handler = COMMAND_DISPATCH.get((args.command, getattr(args, "subcommand", None)))
    if handler is None:
        parser.parse_args([args.command, "--help"])
        return 0

    logging.basicConfig(level=args.log_level, stream=sys.stderr)

    try:
        settings = load_s3_settings()
        return handler(args, settings)
    except (S3ConfigError, BucketNamingError) as e:
        _output_json(_make_error_result("CONFIG_ERROR", str(e)))
        return 2
    except ObjectStorageError as e:
        _output_json(_make_error_result("STORE_ERROR", str(e)))
        return 1
    except Exception as e:
        # Fail-closed: unexpected errors return exit code 1
        logger.exception("Unexpected error in '%s %s'", args.command, args.subcommand)
        _output_json(_make_error_result("INTERNAL_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
