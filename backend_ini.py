"""INI/Config file backend, for file:// URIs pointing at a .ini/.cfg file.

Structure:
    section_name/
      key1        - value of key1 in [section_name]
      nested/key  - option literally named "nested/key"

The first path segment names the section; the rest form the option name.
Writes go back to the file immediately.
"""

import configparser
import logging

from backend import Backend, BackendError
from tree import split_path

logger = logging.getLogger(__name__)

SUFFIXES = (".ini", ".cfg")

# configparser merges its default section into every other section. Name it
# something no header line can produce so "[DEFAULT]" is an ordinary section.
NO_DEFAULT_SECTION = "\0"

_BAD_OPTION_START = ("[", "#", ";")
_BAD_OPTION_CHARS = ("=", ":", "\n", "\r")


def _describe(e: configparser.Error) -> str:
    lineno = getattr(e, "lineno", None)
    if lineno:
        return f"{e.message} (line {lineno})"
    return str(e)


class IniBackend(Backend):
    """Read and write an INI/config file."""

    def __init__(self, path: str):
        super().__init__()
        if not path.lower().endswith(SUFFIXES):
            raise BackendError(f"Invalid type in file name: {path}")
        self._file = path
        self._config = configparser.ConfigParser(
            interpolation=None, default_section=NO_DEFAULT_SECTION
        )
        self._config.optionxform = str
        try:
            with open(path, "r", encoding="utf-8") as f:
                self._config.read_file(f)
        except configparser.Error as e:
            raise BackendError(f"Cannot read INI file {path}: {_describe(e)}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise BackendError(f"Cannot read INI file: {e}") from e
        logger.debug("Opened INI file %s (%d sections)", path, len(self._config.sections()))

    def _split(self, path: str) -> tuple[str, str] | None:
        parts = self._key_parts(path)
        if len(parts) < 2:
            return None
        return parts[0], "/".join(parts[1:])

    def _check(self, section: str, option: str) -> None:
        """Reject names that would read back as something else."""
        if "\n" in section or "\r" in section:
            raise BackendError(f"Invalid INI section name: {section!r}")
        if (option != option.strip() or option.startswith(_BAD_OPTION_START)
                or any(c in option for c in _BAD_OPTION_CHARS)):
            raise BackendError(f"Invalid INI option name: {option!r}")

    def _save(self) -> None:
        try:
            with open(self._file, "w", encoding="utf-8") as f:
                self._config.write(f)
        except OSError as e:
            raise BackendError(f"Cannot write INI file: {e}") from e

    def put_string(self, path: str, value: str) -> None:
        location = self._split(path)
        if location is None:
            raise BackendError(f"INI paths need a section and a key: {self._key(path)!r}")
        section, option = location
        self._check(section, option)
        if not self._config.has_section(section):
            try:
                self._config.add_section(section)
            except ValueError as e:
                raise BackendError(f"Cannot add INI section {section!r}: {e}") from e
        self._config.set(section, option, value)
        logger.debug("Put %s/%s in %s", section, option, self._file)
        self._save()

    def get_string(self, path: str) -> str | None:
        location = self._split(path)
        if location is None:
            return None
        section, option = location
        return self._config.get(section, option, fallback=None)

    def get_recursive_map(self, path: str) -> dict[str, str]:
        items = []
        for section in self._config.sections():
            for option, value in self._config.items(section):
                items.append((f"{section}/{'/'.join(split_path(option))}", value))
        return self._collect(items, path)
