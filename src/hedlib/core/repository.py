"""
Repository pattern for accessing the HED schemas of an annotation context.

This module provides a clean interface for loading the schemas a dataset
declares and resolving tags against them, without exposing registry or file
lookup details.
"""

from pathlib import Path
from typing import Optional

from .errors import HedError
from .models import HedSchema
from .registry import SchemaRegistry, LibraryBinding
from .resolver import NamespaceResolver, ResolvedTag
from .validator import SchemaValidator, ValidationResult
from ..config.settings import get_settings
from ..infrastructure.dataset_description import get_hed_version, is_bids_dataset
from ..infrastructure.logging_config import get_logger
from ..infrastructure.paths import normalize_search_dirs
from ..infrastructure.schema_loader import load_schema

logger = get_logger(__name__)


class HedRepository:
    """
    Repository for loading and using the HED schemas of a dataset.

    The repository reads HEDVersion from the dataset description, binds each
    declared schema to its nickname and loads the schema files from the
    dataset directory and the configured schema directories. Schemas may also
    be added directly, with or without a dataset.
    """

    def __init__(self, dataset_path: Optional[Path] = None, search_dirs: Optional[list[Path]] = None):
        """
        Initialize the repository.

        Args:
            dataset_path: Path to a BIDS dataset root, or None to start empty.
            search_dirs: Schema directories to use instead of the configured ones.

        Raises:
            FileNotFoundError: If the dataset path does not exist.
            ValueError: If the path is not a directory or has no dataset_description.json.
        """
        self.dataset_path = Path(dataset_path) if dataset_path is not None else None
        self._settings = get_settings()
        self._registry = SchemaRegistry()
        self._resolver: Optional[NamespaceResolver] = None
        self._results: dict[str, ValidationResult] = {}

        if search_dirs is None:
            search_dirs = self._settings.get_search_dirs()
        self.search_dirs = normalize_search_dirs(search_dirs)

        if self.dataset_path is None:
            return

        if not self.dataset_path.exists():
            raise FileNotFoundError(f"Dataset path does not exist: {self.dataset_path}")

        if not self.dataset_path.is_dir():
            raise ValueError(f"Path is not a directory: {self.dataset_path}")

        if not is_bids_dataset(self.dataset_path):
            raise ValueError(f"Not a valid BIDS dataset (missing dataset_description.json): {self.dataset_path}")

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    @property
    def resolver(self) -> NamespaceResolver:
        """Resolver over the schemas loaded so far."""
        if self._resolver is None:
            self._resolver = NamespaceResolver(self._registry)
        return self._resolver

    @property
    def validation_results(self) -> dict[str, ValidationResult]:
        """Validation results of loaded schemas, keyed by nickname."""
        return dict(self._results)

    def load(self) -> SchemaRegistry:
        """
        Bind and load every schema declared by the dataset's HEDVersion.

        Returns:
            The registry with all declared schemas loaded.

        Raises:
            ValueError: If no dataset was given or it declares no HEDVersion.
            HedVersionError: If HEDVersion is malformed.
            FileNotFoundError: If a declared schema file cannot be found.
            HedFileError: If a schema file cannot be parsed.
        """
        if self.dataset_path is None:
            raise ValueError("No dataset path given; add schemas with add_schema() instead")

        hed_version = get_hed_version(self.dataset_path)
        if hed_version is None:
            raise ValueError(f"Dataset declares no HEDVersion: {self.dataset_path}")

        self._registry = SchemaRegistry.from_hed_version(hed_version)
        self._resolver = None
        self._results = {}

        self._registry.load(self.search_dirs, base_dir=self.dataset_path)

        if self._settings.validate_on_load:
            for binding in self._registry:
                self._validate_binding(binding)

        logger.info(
            f"Loaded {len(self._registry)} schema(s) for {self.dataset_path}: "
            f"{', '.join(binding.describe() for binding in self._registry)}"
        )
        return self._registry

    def add_schema(self, schema: HedSchema | Path | str, nickname: str = '') -> LibraryBinding:
        """
        Add a schema directly, binding it to a nickname.

        Adding a standard schema re-validates partnered libraries already
        added for that standard version.

        Args:
            schema: A loaded schema or the path of a schema file.
            nickname: Prefix to bind; empty for unprefixed tags.

        Returns:
            The binding holding the schema.

        Raises:
            HedVersionError: If the nickname is invalid or already bound to another schema.
        """
        if not isinstance(schema, HedSchema):
            schema = load_schema(Path(schema))

        binding = self._registry.register(schema, nickname)
        self._resolver = None

        if self._settings.validate_on_load:
            self._validate_binding(binding)
            if not schema.library:
                self._revalidate_partners(schema)
        return binding

    def get_schema(self, nickname: str = '') -> Optional[HedSchema]:
        return self._registry.get_schema(nickname)

    def resolve(self, tag: str) -> ResolvedTag:
        """
        Resolve one tag against the loaded schemas.

        Args:
            tag: Tag string such as 'dp:Change-lanes'.

        Returns:
            The resolution result.
        """
        return self.resolver.resolve(tag)

    def validate(self, nickname: str = '') -> ValidationResult:
        """
        Validate the schema bound to a nickname.

        Args:
            nickname: Prefix of the schema to validate.

        Returns:
            The validation result.

        Raises:
            HedError: If no schema is loaded for the nickname.
        """
        binding = self._registry.get_binding(nickname)
        if binding is None or not binding.is_loaded:
            raise HedError(f"No schema loaded for '{nickname or '(unprefixed)'}'")
        return self._validate_binding(binding)

    def _validate_binding(self, binding: LibraryBinding) -> ValidationResult:
        schema = binding.schema
        validator = SchemaValidator(
            schema,
            standard=self._find_standard(schema),
            max_depth=self._settings.max_tag_depth,
            check_style=self._settings.check_style,
        )
        result = validator.validate()
        self._results[binding.nickname] = result

        if not result.is_valid:
            logger.warning(f"Schema {binding.describe()} has {len(result.errors)} validation error(s)")
        return result

    def _revalidate_partners(self, standard: HedSchema) -> None:
        """Re-check partnered libraries that were validated before their standard was added."""
        for binding in self._registry:
            other = binding.schema
            if other is not None and standard.version and other.header.with_standard == standard.version:
                logger.debug(f"Re-validating {binding.describe()} against standard {standard.version}")
                self._validate_binding(binding)

    def _find_standard(self, schema: HedSchema) -> Optional[HedSchema]:
        """Find a loaded standard schema matching a partnered library's withStandard."""
        if not schema.header.is_partnered:
            return None
        for binding in self._registry:
            other = binding.schema
            if other is not None and not other.library and other.version == schema.header.with_standard:
                return other
        return None
