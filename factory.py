"""Factory for instantiating configuration backends from a URI.

    file:///etc/app/config.ini     -> IniBackend("/etc/app/config.ini")
    json:///etc/app/config.json    -> JsonBackend("/etc/app/config.json")
    consul://host:8500/app/prefix  -> ConsulBackend("host", 8500), prefix "app/prefix"
"""

import logging
from urllib.parse import SplitResult, urlsplit

from backend import (
    Backend,
    BackendNotEnabledError,
    MalformedInputError,
    UnrecognizedBackendError,
)

logger = logging.getLogger(__name__)


def _file_path(uri: SplitResult) -> str:
    # Without an authority ("file://tmp/x.ini") the first path segment ends up
    # as the host, so fold the two back together into one absolute path.
    return "/" + (uri.netloc + uri.path).lstrip("/")


def _make_file(cls, uri: SplitResult) -> Backend:
    return cls(_file_path(uri))


def _make_consul(cls, uri: SplitResult) -> Backend:
    try:
        port = uri.port
    except ValueError as e:
        raise MalformedInputError(f"Ill-formed URI: {e}") from e
    kwargs = {"host": uri.hostname or "localhost"}
    if port:
        kwargs["port"] = port
    backend = cls(**kwargs)
    if uri.path.strip("/"):
        backend.set_prefix(uri.path)
    return backend


# Maps scheme -> (module, class, constructor)
BACKENDS = {
    "file": ("backend_ini", "IniBackend", _make_file),
    "json": ("backend_json", "JsonBackend", _make_file),
    "consul": ("backend_consul", "ConsulBackend", _make_consul),
}


def load_backend_class(scheme: str) -> type:
    """Import the backend class registered for scheme."""
    if scheme not in BACKENDS:
        raise UnrecognizedBackendError(f"Unrecognized backend: {scheme!r}")
    mod_name, cls_name, _ = BACKENDS[scheme]
    try:
        module = __import__(mod_name)
    except ImportError as e:
        raise BackendNotEnabledError(f"Back-end '{scheme}' not enabled: {e}") from e
    return getattr(module, cls_name)


def get_configuration(uri: str) -> Backend:
    """Parse uri and return the matching backend."""
    try:
        parsed = urlsplit(uri)
    except ValueError as e:
        raise MalformedInputError(f"Ill-formed URI: {e}") from e
    if not parsed.scheme:
        raise MalformedInputError(f"Ill-formed URI: {uri!r}")

    cls = load_backend_class(parsed.scheme)
    _, _, make = BACKENDS[parsed.scheme]
    backend = make(cls, parsed)
    logger.info("Using %s for %s", cls.__name__, uri)
    return backend
