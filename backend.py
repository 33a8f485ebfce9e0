"""Base configuration backend interface and in-memory reference implementation."""

import re

from tree import Node, build_tree, split_path

DEFAULT_SEPARATOR = "/"

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


class ConfigurationError(Exception):
    """Base error for configuration operations."""
    pass


class MalformedInputError(ConfigurationError, ValueError):
    """Input that cannot be interpreted, such as a URI without a scheme."""
    pass


class ConversionError(MalformedInputError):
    """Stored value is not a valid representation of the requested type."""
    pass


class UnsupportedBackendError(ConfigurationError):
    """No backend is available for the requested scheme."""
    pass


class UnrecognizedBackendError(UnsupportedBackendError):
    """Scheme is not known at all."""
    pass


class BackendNotEnabledError(UnsupportedBackendError):
    """Scheme is known but its backend cannot be loaded."""
    pass


class BackendError(ConfigurationError):
    """The underlying medium failed: missing file, parse error, remote error."""
    pass


def format_value(value) -> str:
    """Return the canonical string form of a str, int or float."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise TypeError("Unsupported value type: bool")
    if isinstance(value, int):
        try:
            return str(value)
        except ValueError as e:
            raise ConversionError(f"Cannot convert integer to text: {e}") from e
    if isinstance(value, float):
        return repr(value)
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


def parse_value(text: str, value_type: type):
    """Convert a stored string to value_type (str, int or float)."""
    if value_type is str:
        return text
    if value_type is int:
        if not _INT_RE.fullmatch(text):
            raise ConversionError(f"Not an integer: {text!r}")
        try:
            return int(text)
        except ValueError as e:
            raise ConversionError(f"Not a representable integer: {e}") from e
    if value_type is float:
        if not _FLOAT_RE.fullmatch(text):
            raise ConversionError(f"Not a floating point number: {text!r}")
        return float(text)
    raise TypeError(f"Unsupported value type: {getattr(value_type, '__name__', value_type)}")


class Backend:
    """Abstract configuration interface.

    Subclasses implement put_string(), get_string() and get_recursive_map().
    Everything else has a default built on those and may be overridden where
    the medium offers something better.

    Paths passed to put/get are split on the current separator ('/' unless
    changed with set_path_separator()). The prefix set with set_prefix() is
    always '/'-separated. Both are prepended/applied to build a store key,
    the '/'-joined segments that subclasses actually address.
    """

    def __init__(self):
        self._prefix: list[str] = []
        self._separator = DEFAULT_SEPARATOR

    # --- primitives ---

    def put_string(self, path: str, value: str) -> None:
        """Store a string at path."""
        raise NotImplementedError

    def get_string(self, path: str) -> str | None:
        """Return the string at path, or None if there is no value."""
        raise NotImplementedError

    def get_recursive_map(self, path: str) -> dict[str, str]:
        """Return {full path: value} for every key at or below path."""
        raise NotImplementedError

    # --- defaults ---

    def exists(self, path: str) -> bool:
        """Whether a value is stored at path.

        Not a cheap call for every backend. Prefer checking the None return
        of the getters over calling this before a get.
        """
        return self.get_string(path) is not None

    def set_prefix(self, prefix: str) -> None:
        self._prefix = split_path(prefix, DEFAULT_SEPARATOR)

    def set_path_separator(self, separator: str) -> None:
        if len(separator) != 1:
            raise ValueError(f"Separator must be a single character: {separator!r}")
        self._separator = separator

    def reset_path_separator(self) -> None:
        self._separator = DEFAULT_SEPARATOR

    def get_recursive(self, path: str) -> Node:
        """Return the values at or below path as a tree rooted at path."""
        return build_tree(self.get_recursive_map(path), self._separator, path)

    def put_int(self, path: str, value: int) -> None:
        self.put_string(path, format_value(value))

    def put_float(self, path: str, value: float) -> None:
        self.put_string(path, format_value(float(value)))

    def get_int(self, path: str) -> int | None:
        text = self.get_string(path)
        return None if text is None else parse_value(text, int)

    def get_float(self, path: str) -> float | None:
        text = self.get_string(path)
        return None if text is None else parse_value(text, float)

    def put(self, path: str, value) -> None:
        """Store a str, int or float, dispatching on its type."""
        if isinstance(value, str):
            self.put_string(path, value)
        elif isinstance(value, bool):
            raise TypeError("Unsupported value type: bool")
        elif isinstance(value, int):
            self.put_int(path, value)
        elif isinstance(value, float):
            self.put_float(path, value)
        else:
            raise TypeError(f"Unsupported value type: {type(value).__name__}")

    def get(self, path: str, value_type: type = str):
        """Return the value at path as value_type (str, int or float)."""
        if value_type is str:
            return self.get_string(path)
        if value_type is int:
            return self.get_int(path)
        if value_type is float:
            return self.get_float(path)
        raise TypeError(f"Unsupported value type: {getattr(value_type, '__name__', value_type)}")

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # --- helpers for subclasses ---

    def _key_parts(self, path: str) -> list[str]:
        return self._prefix + split_path(path, self._separator)

    def _key(self, path: str) -> str:
        """Translate a caller path into a '/'-joined store key."""
        return DEFAULT_SEPARATOR.join(self._key_parts(path))

    def _path(self, key: str) -> str:
        """Translate a store key back into a caller path (prefix removed)."""
        parts = split_path(key, DEFAULT_SEPARATOR)[len(self._prefix):]
        return self._separator.join(parts)

    def _collect(self, items, path: str) -> dict[str, str]:
        """Filter (store key, value) pairs to those at or below path."""
        base = self._key_parts(path)
        depth = len(base)
        result = {}
        for key, value in items:
            if split_path(key, DEFAULT_SEPARATOR)[:depth] == base:
                result[self._path(key)] = value
        return result


class MemoryBackend(Backend):
    """In-memory backend backed by a flat dict of store keys.

    Example:
        MemoryBackend({
            "app/name": "svc",
            "app/db/port": "5432",
        })
    """

    def __init__(self, values: dict[str, str] | None = None):
        super().__init__()
        self._values: dict[str, str] = {}
        for key, value in (values or {}).items():
            self._values["/".join(split_path(key))] = value

    def put_string(self, path: str, value: str) -> None:
        key = self._key(path)
        if not key:
            raise BackendError("Cannot put a value at the root")
        self._values[key] = value

    def get_string(self, path: str) -> str | None:
        return self._values.get(self._key(path))

    def get_recursive_map(self, path: str) -> dict[str, str]:
        return self._collect(self._values.items(), path)
