"""JSON file backend, for json:// URIs.

Structure:
    object keys   -> path segments
    list indices  -> path segments named "0", "1", ...
    scalars       -> values, read back as their string representation

Objects and lists are not values themselves: get_string() on one returns None
and put_string() on one raises BackendError. Object keys containing "/" cannot
be addressed by a path and are left out of get_recursive_map().
"""

import json
import logging

from backend import Backend, BackendError, format_value

logger = logging.getLogger(__name__)


def _to_string(node) -> str:
    if node is None:
        return "null"
    if isinstance(node, bool):
        return "true" if node else "false"
    if isinstance(node, (int, float)):
        return format_value(node)
    return str(node)


def _index(node: list, part: str) -> int | None:
    try:
        index = int(part)
    except ValueError:
        return None
    if index < 0 or index >= len(node):
        return None
    return index


def _walk(node, parts: list[str]):
    """Yield (segments, scalar) for every scalar below node."""
    if isinstance(node, dict):
        for name, child in node.items():
            if "/" in name:
                continue
            yield from _walk(child, parts + [name])
    elif isinstance(node, list):
        for i, child in enumerate(node):
            yield from _walk(child, parts + [str(i)])
    else:
        yield parts, node


class JsonBackend(Backend):
    """Read and write a JSON file."""

    def __init__(self, path: str):
        super().__init__()
        self._file = path
        try:
            with open(path, "r", encoding="utf-8") as f:
                self._root = json.load(f)
        except (ValueError, OSError) as e:
            raise BackendError(f"Cannot read JSON file {path}: {e}") from e

        if not isinstance(self._root, (dict, list)):
            raise BackendError("JSON root must be a dict or list")
        logger.debug("Opened JSON file %s", path)

    def _resolve(self, parts: list[str]):
        node = self._root
        for part in parts:
            if isinstance(node, dict):
                if part not in node:
                    return None
                node = node[part]
            elif isinstance(node, list):
                index = _index(node, part)
                if index is None:
                    return None
                node = node[index]
            else:
                return None
        return node

    def _save(self) -> None:
        try:
            with open(self._file, "w", encoding="utf-8") as f:
                json.dump(self._root, f, indent=2)
                f.write("\n")
        except OSError as e:
            raise BackendError(f"Cannot write JSON file: {e}") from e

    def _put(self, path: str, value) -> None:
        parts = self._key_parts(path)
        if not parts:
            raise BackendError("Cannot put a value at the root")

        node = self._root
        for part in parts[:-1]:
            if isinstance(node, dict):
                if part not in node:
                    node[part] = {}
                node = node[part]
            elif isinstance(node, list):
                index = _index(node, part)
                if index is None:
                    raise BackendError(f"No list element {part!r} in {'/'.join(parts)}")
                node = node[index]
            else:
                raise BackendError(f"Cannot put below a scalar value: {'/'.join(parts)}")

        last = parts[-1]
        if isinstance(node, dict):
            if isinstance(node.get(last), (dict, list)):
                raise BackendError(f"Cannot replace an object or list: {'/'.join(parts)}")
            node[last] = value
        elif isinstance(node, list):
            index = _index(node, last)
            if index is None:
                raise BackendError(f"No list element {last!r} in {'/'.join(parts)}")
            if isinstance(node[index], (dict, list)):
                raise BackendError(f"Cannot replace an object or list: {'/'.join(parts)}")
            node[index] = value
        else:
            raise BackendError(f"Cannot put below a scalar value: {'/'.join(parts)}")

        logger.debug("Put %s in %s", "/".join(parts), self._file)
        self._save()

    def put_string(self, path: str, value: str) -> None:
        self._put(path, value)

    def put_int(self, path: str, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Not an integer: {value!r}")
        format_value(value)
        self._put(path, value)

    def put_float(self, path: str, value: float) -> None:
        self._put(path, float(value))

    def get_string(self, path: str) -> str | None:
        node = self._resolve(self._key_parts(path))
        if isinstance(node, (dict, list)):
            return None
        if node is None and not self._has(path):
            return None
        return _to_string(node)

    def _has(self, path: str) -> bool:
        parts = self._key_parts(path)
        if not parts:
            return False
        parent = self._resolve(parts[:-1])
        if isinstance(parent, dict):
            return parts[-1] in parent
        if isinstance(parent, list):
            return _index(parent, parts[-1]) is not None
        return False

    def get_recursive_map(self, path: str) -> dict[str, str]:
        items = (("/".join(parts), _to_string(value)) for parts, value in _walk(self._root, []))
        return self._collect(items, path)
