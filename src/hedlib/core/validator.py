"""
Schema validation.

This module checks a loaded HedSchema against the library schema rules:
terms are unique, every attribute, property, unit class and value class a
schema uses is declared in that same schema, placeholders and rooted nodes
are well formed, and the header carries a valid library name and semantic
version. Nothing is inferred from other schemas; a standard schema passed in
is only used for the partnered-library checks that name it explicitly.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from ..infrastructure.logging_config import get_logger
from . import errors
from .errors import HedIssue, ERROR, WARNING
from .models import HedSchema, HedTagEntry, SchemaElement, AttributeDefinition
from .schema_constants import (
    BOOL_PROPERTY,
    ELEMENT_PROPERTY,
    ELEMENT_KIND_PROPERTIES,
    TAG_ELEMENT,
    UNIT_CLASS_ELEMENT,
    UNIT_ELEMENT,
    UNIT_MODIFIER_ELEMENT,
    VALUE_CLASS_ELEMENT,
    TAKES_VALUE,
    UNIT_CLASS,
    VALUE_CLASS,
    DEFAULT_UNITS,
    ROOTED,
    TAG_REFERENCE_ATTRIBUTES,
    TERM_RE,
    get_section_display_name,
)
from .versions import is_valid_name, is_valid_semver, parse_schema_file_name

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 8


@dataclass
class ValidationResult:
    """Outcome of validating one schema."""

    schema_name: str
    """Version spec of the validated schema (e.g., 'driving_1.0.0')."""

    issues: list[HedIssue] = field(default_factory=list)
    """All issues in the order they were found."""

    @property
    def errors(self) -> list[HedIssue]:
        return [issue for issue in self.issues if issue.severity == ERROR]

    @property
    def warnings(self) -> list[HedIssue]:
        return [issue for issue in self.issues if issue.severity == WARNING]

    @property
    def is_valid(self) -> bool:
        """True if no errors were found (warnings are allowed)."""
        return not self.errors

    def codes(self) -> set[str]:
        return {issue.code for issue in self.issues}

    def format_issues(self) -> str:
        """
        Render the issues as text, one per line.

        Returns:
            Multi-line report, or a single line stating that no issues were found.
        """
        if not self.issues:
            return f"{self.schema_name}: no issues found"
        lines = [f"{self.schema_name}: {len(self.errors)} error(s), {len(self.warnings)} warning(s)"]
        lines.extend(f"  {issue}" for issue in self.issues)
        return '\n'.join(lines)


class SchemaValidator:
    """
    Validates a HedSchema against the library schema rules.
    """

    def __init__(
        self,
        schema: HedSchema,
        standard: Optional[HedSchema] = None,
        max_depth: Optional[int] = DEFAULT_MAX_DEPTH,
        check_style: bool = True
    ):
        """
        Initialize the validator.

        Args:
            schema: The schema to validate.
            standard: Standard schema a partnered library is checked against, if available.
            max_depth: Deepest allowed nesting level; None or 0 disables the check.
            check_style: Whether to report capitalization and missing descriptions.
        """
        self.schema = schema
        self.standard = standard
        self.max_depth = max_depth
        self.check_style = check_style
        self._issues: list[HedIssue] = []

    def validate(self) -> ValidationResult:
        """
        Run all checks.

        Returns:
            The validation result with every issue found.
        """
        self._issues = []

        self._check_header()
        self._check_file_name()
        self._check_duplicates()
        self._check_tags()
        self._check_definitions()
        self._check_attribute_definitions()

        result = ValidationResult(schema_name=str(self.schema.version_spec), issues=self._issues)
        logger.info(
            f"Validated schema {result.schema_name}: "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    def _add(self, code: str, message: str, element: Optional[str] = None, severity: str = ERROR) -> None:
        issue = HedIssue(code=code, message=message, severity=severity, element=element)
        logger.debug(str(issue))
        self._issues.append(issue)

    def _check_header(self) -> None:
        header = self.schema.header

        if not is_valid_semver(header.version):
            self._add(
                errors.HEADER_VERSION_INVALID,
                f"Version '{header.version}' is not a semantic version (MAJOR.MINOR.PATCH)"
            )

        if header.library and not is_valid_name(header.library):
            self._add(
                errors.HEADER_LIBRARY_INVALID,
                f"Library name '{header.library}' must contain only letters"
            )

        if header.with_standard:
            if not is_valid_semver(header.with_standard):
                self._add(
                    errors.HEADER_WITH_STANDARD_INVALID,
                    f"withStandard '{header.with_standard}' is not a semantic version"
                )
            if not header.library:
                self._add(
                    errors.HEADER_WITH_STANDARD_INVALID,
                    "withStandard is only allowed in library schemas"
                )
            if self.standard is not None and self.standard.version != header.with_standard:
                self._add(
                    errors.HEADER_WITH_STANDARD_INVALID,
                    f"Schema is partnered with standard {header.with_standard} "
                    f"but standard {self.standard.version} was supplied"
                )
        elif header.unmerged:
            self._add(
                errors.HEADER_WITH_STANDARD_INVALID,
                "unmerged is only meaningful for schemas declaring withStandard"
            )

    def _check_file_name(self) -> None:
        source = self.schema.source
        if source is None:
            return

        parsed = parse_schema_file_name(source.name)
        if parsed is None:
            self._add(
                errors.FILE_NAME_MISMATCH,
                f"File name '{source.name}' does not follow the convention "
                f"'{self.schema.header.file_name}'",
                severity=WARNING
            )
            return

        library, version, _ = parsed
        if (library, version) != (self.schema.library, self.schema.version):
            self._add(
                errors.FILE_NAME_MISMATCH,
                f"File name '{source.name}' does not match header "
                f"(library='{self.schema.library}', version='{self.schema.version}')",
                severity=WARNING
            )

    def _check_duplicates(self) -> None:
        """Check term uniqueness and duplicate definitions."""
        for term, entries in self.schema.duplicate_terms().items():
            locations = ', '.join(entry.long_name for entry in entries)
            self._add(
                errors.TERM_DUPLICATED,
                f"Term '{entries[0].name}' is defined {len(entries)} times: {locations}",
                element=entries[0].name
            )

        # A partnered library shares one namespace with its standard schema
        if self.standard is not None and self.schema.header.is_library:
            for entry in self.schema.iter_tags():
                if entry.is_placeholder:
                    continue
                existing = self.standard.get_tag(entry.name)
                if existing is not None:
                    self._add(
                        errors.TERM_DUPLICATED,
                        f"Term '{entry.name}' already exists in the standard schema as '{existing.long_name}'",
                        element=entry.long_name
                    )

        for section, name in self.schema.duplicate_definitions:
            self._add(
                errors.DEFINITION_DUPLICATED,
                f"'{name}' is defined more than once in {get_section_display_name(section)}",
                element=name
            )

        unit_counts = Counter(unit.name for _, unit in self.schema.iter_units())
        for name, count in unit_counts.items():
            if count > 1:
                self._add(
                    errors.DEFINITION_DUPLICATED,
                    f"Unit '{name}' is defined {count} times",
                    element=name
                )

    def _check_tags(self) -> None:
        for entry in self.schema.iter_tags():
            label = entry.long_name

            if entry.is_placeholder:
                self._check_placeholder(entry)
            else:
                self._check_term(entry)
                if entry.has_attribute(TAKES_VALUE):
                    self._add(
                        errors.PLACEHOLDER_INVALID,
                        f"'{TAKES_VALUE}' may only be used on '#' placeholder nodes",
                        element=label
                    )

            if self.max_depth and entry.depth > self.max_depth:
                self._add(
                    errors.DEPTH_EXCEEDED,
                    f"Node is nested {entry.depth} levels deep (maximum {self.max_depth})",
                    element=label,
                    severity=WARNING
                )

            self._check_element_attributes(entry, TAG_ELEMENT, label)
            self._check_class_references(entry, label)
            self._check_tag_references(entry, label)
            self._check_rooted(entry, label)

    def _check_term(self, entry: HedTagEntry) -> None:
        if not TERM_RE.match(entry.name):
            self._add(
                errors.TERM_INVALID,
                f"Term '{entry.name}' may only contain letters, digits, '-' and '_'",
                element=entry.long_name
            )
            return

        if not self.check_style:
            return

        if not (entry.name[0].isupper() or entry.name[0].isdigit()):
            self._add(
                errors.TERM_CAPITALIZATION,
                f"Term '{entry.name}' should start with a capital letter",
                element=entry.long_name,
                severity=WARNING
            )
        if not entry.description:
            self._add(
                errors.DESCRIPTION_MISSING,
                "Tag has no description",
                element=entry.long_name,
                severity=WARNING
            )

    def _check_placeholder(self, entry: HedTagEntry) -> None:
        label = entry.long_name

        if entry.parent is None:
            self._add(errors.PLACEHOLDER_INVALID, "'#' cannot be a top-level node", element=label)
        elif len(entry.parent.children) > 1:
            self._add(
                errors.PLACEHOLDER_INVALID,
                f"'#' must be the only child of '{entry.parent.name}'",
                element=label
            )

        if entry.children:
            self._add(errors.PLACEHOLDER_INVALID, "'#' cannot have children", element=label)

    def _check_element_attributes(self, element: SchemaElement, kind: str, label: str) -> None:
        """
        Check that each attribute used on an element is declared locally and applicable.

        Args:
            element: Element whose attributes are checked.
            kind: Element kind (tag, unitClass, unit, unitModifier, valueClass).
            label: Name used in issue messages.
        """
        for name, value in element.attributes.items():
            definition = self.schema.attributes.get(name)
            if definition is None:
                self._add(
                    errors.ATTRIBUTE_UNDEFINED,
                    f"Attribute '{name}' is not defined in this schema",
                    element=label
                )
                continue

            if not _attribute_applies_to(definition, kind):
                self._add(
                    errors.ATTRIBUTE_NOT_APPLICABLE,
                    f"Attribute '{name}' cannot be used on a {kind}",
                    element=label
                )

            is_bool = definition.has_property(BOOL_PROPERTY)
            if is_bool and value is not True:
                self._add(
                    errors.ATTRIBUTE_VALUE_INVALID,
                    f"Attribute '{name}' is a {BOOL_PROPERTY} attribute and takes no value",
                    element=label
                )
            elif not is_bool and value is True:
                self._add(
                    errors.ATTRIBUTE_VALUE_INVALID,
                    f"Attribute '{name}' requires a value",
                    element=label
                )

    def _check_class_references(self, entry: HedTagEntry, label: str) -> None:
        for unit_class in entry.attribute_values(UNIT_CLASS):
            if unit_class not in self.schema.unit_classes:
                self._add(
                    errors.UNIT_CLASS_UNDEFINED,
                    f"Unit class '{unit_class}' is not defined in this schema",
                    element=label
                )

        for value_class in entry.attribute_values(VALUE_CLASS):
            if value_class not in self.schema.value_classes:
                self._add(
                    errors.VALUE_CLASS_UNDEFINED,
                    f"Value class '{value_class}' is not defined in this schema",
                    element=label
                )

    def _check_tag_references(self, entry: HedTagEntry, label: str) -> None:
        for attr_name in TAG_REFERENCE_ATTRIBUTES:
            for term in entry.attribute_values(attr_name):
                if not self.schema.has_term(term):
                    self._add(
                        errors.TAG_REFERENCE_UNDEFINED,
                        f"{attr_name} '{term}' is not a term of this schema",
                        element=label
                    )

    def _check_rooted(self, entry: HedTagEntry, label: str) -> None:
        if not entry.has_attribute(ROOTED):
            return

        if entry.parent is not None:
            self._add(errors.ROOTED_INVALID, f"'{ROOTED}' may only be used on top-level nodes", element=label)
            return

        if not self.schema.header.is_partnered:
            self._add(
                errors.ROOTED_INVALID,
                f"'{ROOTED}' requires a library schema declaring withStandard",
                element=label
            )
            return

        target = entry.get_attribute(ROOTED)
        if self.standard is not None and isinstance(target, str) and not self.standard.has_term(target):
            self._add(
                errors.ROOTED_INVALID,
                f"Rooted target '{target}' is not a term of standard schema {self.standard.version}",
                element=label
            )

    def _check_definitions(self) -> None:
        for unit_class in self.schema.unit_classes.values():
            self._check_element_attributes(unit_class, UNIT_CLASS_ELEMENT, unit_class.name)

            for default in unit_class.attribute_values(DEFAULT_UNITS):
                if unit_class.get_unit(default) is None:
                    self._add(
                        errors.DEFAULT_UNITS_INVALID,
                        f"Default unit '{default}' is not a unit of '{unit_class.name}'",
                        element=unit_class.name
                    )

            for unit in unit_class.units:
                self._check_element_attributes(unit, UNIT_ELEMENT, f"{unit_class.name}/{unit.name}")

        for modifier in self.schema.unit_modifiers.values():
            self._check_element_attributes(modifier, UNIT_MODIFIER_ELEMENT, modifier.name)

        for value_class in self.schema.value_classes.values():
            self._check_element_attributes(value_class, VALUE_CLASS_ELEMENT, value_class.name)

    def _check_attribute_definitions(self) -> None:
        for attribute in self.schema.attributes.values():
            for prop in sorted(attribute.properties):
                if prop not in self.schema.properties:
                    self._add(
                        errors.PROPERTY_UNDEFINED,
                        f"Property '{prop}' used by attribute '{attribute.name}' is not defined in this schema",
                        element=attribute.name
                    )


def _attribute_applies_to(definition: AttributeDefinition, kind: str) -> bool:
    """
    Decide whether an attribute may be attached to an element kind.

    Attributes with an element property apply to that kind of element;
    elementProperty applies to all kinds; attributes with none apply to tags.
    """
    if definition.has_property(ELEMENT_PROPERTY):
        return True
    kinds = {ELEMENT_KIND_PROPERTIES[prop] for prop in definition.properties if prop in ELEMENT_KIND_PROPERTIES}
    if not kinds:
        return kind == TAG_ELEMENT
    return kind in kinds


def validate_schema(schema: HedSchema, **kwargs) -> ValidationResult:
    """
    Validate a schema with a default-configured SchemaValidator.

    Args:
        schema: The schema to validate.
        **kwargs: Passed to SchemaValidator.

    Returns:
        The validation result.
    """
    return SchemaValidator(schema, **kwargs).validate()
