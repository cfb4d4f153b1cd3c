"""Command line entrypoint for building and checking search index files."""

import argparse
import json
import logging
import sys
from pathlib import Path

from documenter_search_index import search_index
from documenter_search_index.indexer import DocsSearchIndexer
from documenter_search_index.schema import SearchIndexFormatError, validate_records

logger = logging.getLogger(__name__)


def _build(args: argparse.Namespace) -> int:
    indexer = DocsSearchIndexer(variable=args.variable)
    if args.git:
        index = indexer.index_from_git(args.git, branch=args.branch, docs_subdir=args.docs_subdir)
    else:
        index = indexer.index_from_path(args.docs_path)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    search_index.dump(index, args.output)
    print(json.dumps({"output": str(args.output), "records": len(index)}, indent=2))
    return 0


def _validate(args: argparse.Namespace) -> int:
    try:
        _, docs = search_index.read_payload(args.path.read_text(encoding="utf-8"))
    except SearchIndexFormatError as exc:
        print(json.dumps({"path": str(args.path), "valid": False, "error": str(exc)}, indent=2))
        return 1

    violations = validate_records(docs)
    report = {
        "path": str(args.path),
        "valid": not violations,
        "records": len(docs),
        "violations": [
            {"index": violation.index, "field": violation.field, "message": violation.message}
            for violation in violations
        ],
    }
    print(json.dumps(report, indent=2))
    return 0 if not violations else 1


def _stats(args: argparse.Namespace) -> int:
    try:
        index = search_index.load(args.path)
    except SearchIndexFormatError as exc:
        logger.error("%s: %s", args.path, exc)
        return 1

    summary = {
        "path": str(args.path),
        "variable": index.variable,
        "records": len(index),
        "pages": index.pages(),
        "categories": index.category_counts(),
    }
    print(json.dumps(summary, ensure_ascii=False, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface.

    Args:
        argv: Arguments without the program name; defaults to ``sys.argv[1:]``.

    Returns:
        Process exit code.
    """
    parser = argparse.ArgumentParser(description="Build and check documentation search index files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    build = sub.add_parser("build", help="Build search_index.js from reStructuredText sources")
    source = build.add_mutually_exclusive_group(required=True)
    source.add_argument("docs_path", nargs="?", type=Path, help="Documentation source directory")
    source.add_argument("--git", metavar="URL", help="Clone this repository and index its docs")
    build.add_argument("-o", "--output", type=Path, default=Path("search_index.js"), help="Output file")
    build.add_argument("--variable", default=DocsSearchIndexer.VARIABLE_NAME, help="JavaScript variable name")
    build.add_argument("--branch", default="main", help="Git branch to clone")
    build.add_argument("--docs-subdir", default=DocsSearchIndexer.DOCS_SUBDIR, help="Docs directory in the repository")
    build.set_defaults(func=_build)

    validate = sub.add_parser("validate", help="Check every record of a search index file")
    validate.add_argument("path", type=Path, help="search_index.js file")
    validate.set_defaults(func=_validate)

    stats = sub.add_parser("stats", help="Summarise a search index file")
    stats.add_argument("path", type=Path, help="search_index.js file")
    stats.set_defaults(func=_stats)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
