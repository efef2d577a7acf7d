"""
Version/library registry.

A dataset's annotations use one unprefixed schema plus any number of library
schemas, each under a local nickname. The registry records which nickname
refers to which (library name, semantic version) pair and holds the loaded
schemas once they are available.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from ..infrastructure.logging_config import get_logger
from ..infrastructure.schema_loader import find_schema_file, load_schema
from .errors import HedVersionError
from .models import HedSchema
from .versions import VersionSpec, is_valid_name, is_valid_semver, parse_version_spec

logger = get_logger(__name__)


@dataclass
class LibraryBinding:
    """Association of one nickname with one schema."""

    nickname: str
    """Local prefix; empty for unprefixed tags."""

    library: str = ''
    """Library name; empty for the standard schema."""

    version: str = ''
    """Semantic version, or empty while only a file name is known."""

    file_name: Optional[str] = None
    """Explicit schema file name from the dataset description, if given."""

    schema: Optional[HedSchema] = field(default=None, repr=False)
    """The loaded schema, once available."""

    @property
    def is_loaded(self) -> bool:
        return self.schema is not None

    @property
    def spec(self) -> VersionSpec:
        return VersionSpec(nickname=self.nickname, library=self.library, version=self.version)

    def describe(self) -> str:
        """Short text such as 'dp -> driving 1.0.0' for logs and the CLI."""
        name = self.nickname or '(unprefixed)'
        target = f"{self.library or 'standard'} {self.version}".strip()
        if self.file_name:
            target = f"{target} [{self.file_name}]"
        return f"{name} -> {target}"


class SchemaRegistry:
    """
    Registry of nickname to schema bindings.
    """

    def __init__(self):
        self._bindings: dict[str, LibraryBinding] = {}

    def __iter__(self) -> Iterator[LibraryBinding]:
        return iter(self._bindings.values())

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, nickname: str) -> bool:
        return nickname in self._bindings

    @property
    def nicknames(self) -> list[str]:
        return list(self._bindings.keys())

    def get_binding(self, nickname: str) -> Optional[LibraryBinding]:
        return self._bindings.get(nickname)

    def get_schema(self, nickname: str) -> Optional[HedSchema]:
        """
        Get the loaded schema bound to a nickname.

        Args:
            nickname: The prefix, or empty for unprefixed tags.

        Returns:
            The schema, or None if the nickname is unbound or not yet loaded.
        """
        binding = self._bindings.get(nickname)
        return binding.schema if binding is not None else None

    def unloaded(self) -> list[LibraryBinding]:
        return [binding for binding in self._bindings.values() if not binding.is_loaded]

    def bind(self, nickname: str, library: str = '', version: str = '',
             file_name: Optional[str] = None) -> LibraryBinding:
        """
        Declare that a nickname refers to a library version.

        Args:
            nickname: Alphabetic prefix, or empty for the unprefixed schema.
            library: Library name, or empty for the standard schema.
            version: Semantic version (may be empty if file_name is given).
            file_name: Explicit schema file name.

        Returns:
            The new binding, or the existing one if it is identical.

        Raises:
            HedVersionError: If any part is malformed or the nickname is
                already bound to something else.
        """
        if nickname and not is_valid_name(nickname):
            raise HedVersionError(f"Invalid nickname '{nickname}': must contain only letters")
        if library and not is_valid_name(library):
            raise HedVersionError(f"Invalid library name '{library}': must contain only letters")
        if version and not is_valid_semver(version):
            raise HedVersionError(f"Invalid version '{version}' for '{nickname or library or 'standard'}'")
        if not version and not file_name:
            raise HedVersionError(f"Binding for '{nickname or '(unprefixed)'}' needs a version or a file name")

        binding = LibraryBinding(nickname=nickname, library=library, version=version, file_name=file_name)

        existing = self._bindings.get(nickname)
        if existing is not None:
            if (existing.library, existing.version, existing.file_name) == (library, version, file_name):
                return existing
            raise HedVersionError(
                f"Nickname '{nickname or '(unprefixed)'}' is already bound to "
                f"{existing.describe()}, cannot rebind to {binding.describe()}"
            )

        self._bindings[nickname] = binding
        logger.debug(f"Bound {binding.describe()}")
        return binding

    def register(self, schema: HedSchema, nickname: str = '') -> LibraryBinding:
        """
        Attach a loaded schema to a nickname, binding it if needed.

        Args:
            schema: The loaded schema.
            nickname: Prefix to bind; empty for unprefixed tags.

        Returns:
            The binding holding the schema.

        Raises:
            HedVersionError: If the schema does not match an existing binding.
        """
        binding = self._bindings.get(nickname)
        if binding is None:
            binding = self.bind(nickname, schema.library, schema.version)
        elif binding.version:
            if (binding.library, binding.version) != (schema.library, schema.version):
                raise HedVersionError(
                    f"Schema {schema.version_spec} does not match binding {binding.describe()}"
                )
        else:
            # Bound by file name only; the header supplies library and version
            binding.library, binding.version = schema.library, schema.version

        binding.schema = schema
        logger.info(f"Registered schema {binding.describe()}")
        return binding

    def load(self, search_dirs: Iterable[Path], base_dir: Optional[Path] = None) -> None:
        """
        Load every bound schema that is not loaded yet.

        Bindings with an explicit file name look for that file first in
        base_dir, then in the search directories; other bindings look for
        the conventional file name.

        Args:
            search_dirs: Directories holding schema files.
            base_dir: Directory explicit file names are relative to (the dataset root).

        Raises:
            FileNotFoundError: If a schema file cannot be found.
            HedFileError: If a schema file cannot be parsed.
            HedVersionError: If a loaded schema does not match its binding.
        """
        search_dirs = [Path(d) for d in search_dirs]

        for binding in self.unloaded():
            if binding.file_name:
                path = self._find_named_file(binding.file_name, search_dirs, base_dir)
            else:
                path = find_schema_file(binding.library, binding.version, search_dirs)

            if path is None:
                raise FileNotFoundError(
                    f"No schema file found for {binding.describe()} "
                    f"in: {', '.join(str(d) for d in search_dirs) or '(no search directories)'}"
                )

            self.register(load_schema(path), binding.nickname)

    @staticmethod
    def _find_named_file(file_name: str, search_dirs: list[Path], base_dir: Optional[Path]) -> Optional[Path]:
        candidate = Path(file_name)
        if candidate.is_absolute():
            return candidate if candidate.is_file() else None

        roots = ([base_dir] if base_dir is not None else []) + search_dirs
        for root in roots:
            path = root / candidate
            if path.is_file():
                return path
        return None

    @classmethod
    def from_hed_version(cls, value: Any) -> 'SchemaRegistry':
        """
        Build a registry from the HEDVersion value of dataset_description.json.

        Accepted forms:
            - "8.2.0"
            - ["8.2.0", "dp:driving_1.0.0"]
            - {"version": "8.2.0", "fileName": "...",
               "libraries": {"dp": {"libraryName": "driving", "version": "1.0.0"},
                             "lc": {"fileName": "HED_local_0.1.0.xml"}}}

        Args:
            value: The raw HEDVersion value.

        Returns:
            A registry with all bindings declared (schemas not loaded).

        Raises:
            HedVersionError: If the value is malformed or binds a nickname twice.
        """
        registry = cls()

        if isinstance(value, str):
            value = [value]

        if isinstance(value, list):
            for item in value:
                if not isinstance(item, str):
                    raise HedVersionError(f"HEDVersion entries must be strings, got {item!r}")
                spec = parse_version_spec(item)
                registry.bind(spec.nickname, spec.library, spec.version)
        elif isinstance(value, dict):
            registry._bind_version_object(value)
        else:
            raise HedVersionError(f"Unsupported HEDVersion value: {value!r}")

        logger.debug(f"HEDVersion declares {len(registry)} schema(s)")
        return registry

    def _bind_version_object(self, value: dict) -> None:
        version = _string_field(value, 'version', 'HEDVersion')
        file_name = _string_field(value, 'fileName', 'HEDVersion')

        if version or file_name:
            library = ''
            if version:
                spec = parse_version_spec(version)
                if spec.nickname:
                    raise HedVersionError(f"HEDVersion 'version' cannot carry a nickname: '{version}'")
                library, version = spec.library, spec.version
            self.bind('', library, version or '', file_name)

        libraries = value.get('libraries', {})
        if not isinstance(libraries, dict):
            raise HedVersionError("HEDVersion 'libraries' must be an object mapping nicknames to libraries")

        for nickname, library in libraries.items():
            if not isinstance(library, dict):
                raise HedVersionError(f"HEDVersion library '{nickname}' must be an object")
            if not nickname:
                raise HedVersionError("HEDVersion library nicknames cannot be empty")

            where = f"HEDVersion library '{nickname}'"
            lib_name = _string_field(library, 'libraryName', where) or ''
            lib_version = _string_field(library, 'version', where) or ''
            lib_file = _string_field(library, 'fileName', where)
            if not lib_file and not (lib_name and lib_version):
                raise HedVersionError(
                    f"HEDVersion library '{nickname}' needs 'libraryName' and 'version', or 'fileName'"
                )
            self.bind(nickname, lib_name, lib_version, lib_file)

    def to_hed_version(self) -> list[str]:
        """
        Render the bindings as a list of version specs.

        Returns:
            List such as ['8.2.0', 'dp:driving_1.0.0'], unprefixed first.

        Raises:
            HedVersionError: If a binding's version is not known yet.
        """
        specs = []
        for binding in sorted(self._bindings.values(), key=lambda b: (b.nickname != '', b.nickname)):
            if not binding.version:
                raise HedVersionError(f"Version of {binding.describe()} is unknown until it is loaded")
            specs.append(str(binding.spec))
        return specs


def _string_field(obj: dict, key: str, where: str) -> Optional[str]:
    """Get an optional string member of a HEDVersion object."""
    value = obj.get(key)
    if value is not None and not isinstance(value, str):
        raise HedVersionError(f"{where} '{key}' must be a string, got {value!r}")
    return value
