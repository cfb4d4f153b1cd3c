"""Reader and writer for ``search_index.js`` files.

The file is a single JavaScript assignment of a JSON object::

    var documenterSearchIndex = {"docs":
    [{"location":"...","page":"...","title":"...","text":"...","category":"..."}]
    }
"""

import json
import logging
import re
from dataclasses import asdict
from pathlib import Path
from typing import Any, NoReturn

from documenter_search_index.models import SearchIndex, SearchRecord
from documenter_search_index.schema import SearchIndexFormatError, build_records

logger = logging.getLogger(__name__)

_ASSIGNMENT_RE = re.compile(r"\s*var\s+(?P<variable>[A-Za-z_$][\w$]*)\s*=\s*")
_TRAILER_RE = re.compile(r"\s*;?\s*")


def _reject_constant(name: str) -> NoReturn:
    msg = f"Invalid JSON payload: {name} is not a JSON value"
    raise SearchIndexFormatError(msg)


def read_payload(source: str) -> tuple[str, list[Any]]:
    """Decode the assignment and return the raw ``docs`` array.

    Records are not validated.

    Args:
        source: Contents of a search index file.

    Returns:
        Tuple of the assigned variable name and the decoded records.

    Raises:
        SearchIndexFormatError: If the assignment or payload is malformed.
    """
    match = _ASSIGNMENT_RE.match(source)
    if match is None:
        msg = "Expected a 'var <name> = {...}' assignment"
        raise SearchIndexFormatError(msg)

    try:
        payload, end = json.JSONDecoder(parse_constant=_reject_constant).raw_decode(source, match.end())
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON payload: {exc}"
        raise SearchIndexFormatError(msg) from exc
    except RecursionError as exc:
        msg = "Invalid JSON payload: nested too deeply"
        raise SearchIndexFormatError(msg) from exc

    if not _TRAILER_RE.fullmatch(source, end):
        msg = f"Unexpected content after payload at offset {end}"
        raise SearchIndexFormatError(msg)
    if not isinstance(payload, dict):
        msg = f"Expected an object payload, got {type(payload).__name__}"
        raise SearchIndexFormatError(msg)
    docs = payload.get("docs")
    if not isinstance(docs, list):
        msg = "Payload has no 'docs' array"
        raise SearchIndexFormatError(msg)
    return match.group("variable"), docs


def loads(source: str) -> SearchIndex:
    """Parse a search index from a string.

    Args:
        source: Contents of a search index file.

    Returns:
        SearchIndex with validated records.

    Raises:
        SearchIndexFormatError: If the file or any record is malformed.
    """
    variable, docs = read_payload(source)
    return SearchIndex(records=build_records(docs), variable=variable)


def load(path: Path) -> SearchIndex:
    """Read and parse a search index file.

    Args:
        path: Path to the ``search_index.js`` file.

    Returns:
        SearchIndex with validated records.
    """
    index = loads(path.read_text(encoding="utf-8"))
    logger.debug("Loaded %d records from %s", len(index), path)
    return index


def _encode_record(record: SearchRecord) -> str:
    return json.dumps(asdict(record), ensure_ascii=False, separators=(",", ":"))


def dumps(index: SearchIndex) -> str:
    """Serialise a search index in the generator's layout.

    Args:
        index: Search index to serialise.

    Returns:
        File contents, ending with a newline.
    """
    docs = ",".join(_encode_record(record) for record in index.records)
    return f'var {index.variable} = {{"docs":\n[{docs}]\n}}\n'


def dump(index: SearchIndex, path: Path) -> None:
    """Write a search index file, replacing any existing one.

    Args:
        index: Search index to write.
        path: Destination path.
    """
    # An unencodable index leaves the existing file untouched
    data = dumps(index).encode("utf-8")
    path.write_bytes(data)
    logger.info("Wrote %d records to %s", len(index), path)
