"""Entry point for the flare command line."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import CredentialStore, Credentials, FlareConfig
from .config.loader import load_config
from .documents import DocumentScanner
from .git import FlareError, MirrorStore, PublishContext, Publisher


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flare", description="Publish local documents to GitHub via pull requests"
    )
    parser.add_argument(
        "--documents",
        type=Path,
        default=Path.cwd(),
        help="Documents directory (default: current directory)",
    )
    parser.add_argument(
        "--credentials", type=Path, default=None, help="Credentials file path"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("publish", help="Publish changed documents")
    commands.add_parser("status", help="List documents that would be published")

    connect = commands.add_parser("connect", help="Store GitHub credentials")
    connect.add_argument("--token", required=True)
    connect.add_argument("--owner", required=True)
    connect.add_argument("--repo", required=True)

    commands.add_parser("disconnect", help="Forget stored credentials")
    commands.add_parser("reset", help="Delete and re-create the local mirror")
    return parser


def _build_publisher(documents: Path, config: FlareConfig) -> Publisher:
    scanner = DocumentScanner(
        documents,
        patterns=config.documents.patterns,
        skip_hidden=config.documents.skip_hidden,
    )
    mirror = MirrorStore(Path(config.git.mirror_path).expanduser(), config.git)
    return Publisher(scanner, mirror)


def main(argv: list[str] | None = None) -> int:
    """Run flare CLI."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return _run(args)
    except FlareError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _run(args: argparse.Namespace) -> int:
    documents = args.documents.resolve()
    config = load_config(documents)
    store = CredentialStore(args.credentials)
    publisher = _build_publisher(documents, config)
    mirror = publisher.mirror

    if args.command == "connect":
        credentials = Credentials(token=args.token, owner=args.owner, repo_name=args.repo)
        store.set(credentials)
        # Rebinds (and resets) the mirror when the repository changed
        mirror.ensure_ready(credentials)
        print(f"Connected to {credentials.full_name}")
        return 0

    if args.command == "disconnect":
        store.clear()
        print("Disconnected")
        return 0

    credentials = store.get()

    if args.command == "reset":
        remote_url = mirror.remote_url_for(credentials) if credentials else None
        mirror.reset(remote_url)
        print(f"Reset mirror at {mirror.path}")
        return 0

    if args.command == "status":
        change_set = publisher.pending_changes()
        if change_set.is_empty:
            print("Nothing to publish")
        for path in change_set.paths:
            print(f"  {path}")
        return 0

    context = PublishContext(credentials=credentials, config=config)
    result = publisher.publish(context, on_progress=print)
    print(result.message)
    if result.pr_url:
        print(result.pr_url)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
