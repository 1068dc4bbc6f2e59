"""jq path suggestions and path evaluation over a JSON document.

Suggestions are the jq paths that address every node of the input
(``.``, ``.items``, ``.items[0].name``, ``."odd key"``). The same path
subset, plus ``[]`` iteration, can be evaluated to preview its result.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from bisect import bisect_left
from typing import Any, Iterable, Iterator

from qnav.search import SuggestionLookupError

logger = logging.getLogger(__name__)

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_SEGMENT_RE = re.compile(
    r"""\s*\.?\s*(?:
        (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
      | "(?P<quoted>(?:[^"\\]|\\.)*)"
      | \[\s*(?:(?P<index>-?\d+)|"(?P<qkey>(?:[^"\\]|\\.)*)")?\s*\]
    )""",
    re.VERBOSE,
)


class PathError(ValueError):
    """Raised when a path is malformed or cannot be applied to a value."""


# ---------------------------------------------------------------------------
# Path enumeration
# ---------------------------------------------------------------------------


def format_key(key: str) -> str:
    if _IDENT_RE.match(key):
        return f".{key}"
    return f".{json.dumps(key, ensure_ascii=False)}"


def iter_paths(value: Any, max_array_items: int | None = None) -> Iterator[str]:
    """Yield the jq path of every node in *value*, in document order."""
    yield "."
    yield from _walk(value, "", max_array_items)


def _walk(value: Any, path: str, max_array_items: int | None) -> Iterator[str]:
    if isinstance(value, dict):
        for key, child in value.items():
            child_path = path + format_key(key)
            yield child_path
            yield from _walk(child, child_path, max_array_items)
    elif isinstance(value, list):
        items = value if max_array_items is None else value[:max_array_items]
        for i, child in enumerate(items):
            child_path = f"{path or '.'}[{i}]"
            yield child_path
            yield from _walk(child, child_path, max_array_items)


class PathIndex:
    """Sorted, prefix-searchable set of jq paths.

    Implements ``SuggestionSource``. An index created without paths is not
    ready until :meth:`load` completes; lookups before then fail.
    """

    def __init__(self, paths: Iterable[str] | None = None) -> None:
        self._paths: list[str] | None = sorted(set(paths)) if paths is not None else None
        self._load_error: BaseException | None = None

    @property
    def ready(self) -> bool:
        return self._paths is not None

    def mark_failed(self, error: BaseException) -> None:
        """Record that loading failed; later lookups report *error*."""
        self._load_error = error

    def __len__(self) -> int:
        return len(self._paths or ())

    async def load(
        self,
        value: Any,
        *,
        limit: int | None = None,
        max_array_items: int | None = None,
        batch_size: int = 1000,
    ) -> None:
        """Index the paths of *value*, yielding to the event loop between batches."""
        collected: set[str] = set()
        for count, path in enumerate(iter_paths(value, max_array_items), start=1):
            if limit is not None and len(collected) >= limit:
                logger.info("Suggestion index truncated at %d paths", limit)
                break
            collected.add(path)
            if count % batch_size == 0:
                await asyncio.sleep(0)
        self._paths = sorted(collected)
        logger.debug("Indexed %d paths", len(self._paths))

    async def lookup(self, prefix: str, offset: int, limit: int) -> list[str]:
        if self._paths is None:
            if self._load_error is not None:
                raise SuggestionLookupError(f"suggestions are unavailable: {self._load_error}")
            raise SuggestionLookupError("suggestions are still being indexed")
        start = bisect_left(self._paths, prefix) + offset
        result: list[str] = []
        for path in self._paths[start : start + limit]:
            if not path.startswith(prefix):
                break
            result.append(path)
        return result


# ---------------------------------------------------------------------------
# Path evaluation
# ---------------------------------------------------------------------------


def _parse_segments(path: str) -> list[tuple[str, Any]]:
    text = path.strip()
    if not text.startswith("."):
        raise PathError(f"path must start with '.': {path!r}")
    if text == ".":
        return []

    segments: list[tuple[str, Any]] = []
    pos = 0
    while pos < len(text):
        m = _SEGMENT_RE.match(text, pos)
        if not m or m.end() == pos:
            raise PathError(f"unexpected input at offset {pos}: {text[pos:]!r}")
        token = m.group(0).strip()
        if m.group("ident") is not None:
            if not token.startswith("."):
                raise PathError(f"expected '.' before {m.group('ident')!r}")
            segments.append(("key", m.group("ident")))
        elif m.group("quoted") is not None:
            segments.append(("key", json.loads(f'"{m.group("quoted")}"')))
        elif m.group("qkey") is not None:
            segments.append(("key", json.loads(f'"{m.group("qkey")}"')))
        elif m.group("index") is not None:
            segments.append(("index", int(m.group("index"))))
        else:
            segments.append(("iterate", None))
        pos = m.end()
    return segments


def _apply(value: Any, kind: str, arg: Any) -> list[Any]:
    if kind == "key":
        if value is None:
            return [None]
        if not isinstance(value, dict):
            raise PathError(f"cannot index {_type_name(value)} with {arg!r}")
        return [value.get(arg)]
    if kind == "index":
        if value is None:
            return [None]
        if not isinstance(value, list):
            raise PathError(f"cannot index {_type_name(value)} with number")
        try:
            return [value[arg]]
        except IndexError:
            return [None]
    if isinstance(value, dict):
        return list(value.values())
    if isinstance(value, list):
        return list(value)
    raise PathError(f"cannot iterate over {_type_name(value)}")


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def evaluate_path(value: Any, path: str) -> Any:
    """Evaluate a jq path against *value*.

    Returns the addressed value, or a list of values when the path
    iterates with ``[]``. Missing keys and out-of-range indices yield
    ``None`` as in jq.
    """
    segments = _parse_segments(path)
    results = [value]
    for kind, arg in segments:
        results = [out for v in results for out in _apply(v, kind, arg)]
    if any(kind == "iterate" for kind, _ in segments):
        return results
    return results[0]


def limit_arrays(value: Any, max_items: int | None) -> Any:
    """Return a copy of *value* with every array cut to *max_items* elements."""
    if max_items is None:
        return value
    if isinstance(value, dict):
        return {key: limit_arrays(child, max_items) for key, child in value.items()}
    if isinstance(value, list):
        return [limit_arrays(child, max_items) for child in value[:max_items]]
    return value
