"""
Core domain models for HED schema representation.

This module contains pure data models for a loaded HED schema: the tag
hierarchy and the unit class, unit modifier, value class, attribute and
property tables. The models do no validation of their own; the schema
validator reports rule violations.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from .schema_constants import PLACEHOLDER, EXTENSION_ALLOWED
from .versions import VersionSpec, schema_file_name


AttributeValue = str | bool


@dataclass
class SchemaHeader:
    """Header attributes and free text of a schema document."""

    version: str = ''
    """Semantic version of the schema (e.g., '1.0.0')."""

    library: str = ''
    """Library name (e.g., 'driving'). Empty for the standard schema."""

    with_standard: str = ''
    """Version of the standard schema a partnered library is built on."""

    unmerged: bool = False
    """True if a partnered library is stored without the standard schema merged in."""

    prologue: str = ''
    epilogue: str = ''

    @property
    def is_library(self) -> bool:
        return bool(self.library)

    @property
    def is_partnered(self) -> bool:
        return bool(self.with_standard)

    @property
    def file_name(self) -> str:
        """Conventional XML file name for this schema (e.g., 'HED_driving_1.0.0.xml')."""
        return schema_file_name(self.library, self.version)


@dataclass(eq=False)
class SchemaElement:
    """Base class for named schema elements carrying attributes."""

    name: str
    """Element name as written in the schema."""

    description: str = ''
    """Free-text description."""

    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    """Attribute name to value; True for attributes without a value."""

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def get_attribute(self, name: str, default: Optional[AttributeValue] = None) -> Optional[AttributeValue]:
        return self.attributes.get(name, default)

    def attribute_values(self, name: str) -> list[str]:
        """
        Get the individual values of a (possibly multi-valued) attribute.

        Multi-valued attributes are stored comma-joined.

        Args:
            name: The attribute name.

        Returns:
            List of values; empty if the attribute is absent or has no value.
        """
        value = self.attributes.get(name)
        if value is None or isinstance(value, bool):
            return []
        return [part.strip() for part in value.split(',') if part.strip()]

    def set_attribute(self, name: str, value: AttributeValue = True) -> None:
        """
        Set an attribute, appending to the existing value for repeated names.

        Args:
            name: The attribute name.
            value: The attribute value, or True for a valueless attribute.
        """
        existing = self.attributes.get(name)
        if isinstance(existing, str) and isinstance(value, str):
            self.attributes[name] = f"{existing},{value}"
        else:
            self.attributes[name] = value


@dataclass(eq=False)
class HedTagEntry(SchemaElement):
    """A node in the tag hierarchy."""

    parent: Optional['HedTagEntry'] = field(default=None, repr=False)
    """Parent node, or None for a root node."""

    children: list['HedTagEntry'] = field(default_factory=list, repr=False)
    """Child nodes in document order."""

    @property
    def is_placeholder(self) -> bool:
        return self.name == PLACEHOLDER

    @property
    def long_name(self) -> str:
        """Full path from the root node (e.g., 'Action/Drive/Change-lanes')."""
        names = []
        node = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return '/'.join(reversed(names))

    @property
    def depth(self) -> int:
        """Nesting level, 1 for a root node."""
        depth = 1
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    @property
    def value_child(self) -> Optional['HedTagEntry']:
        """The '#' placeholder child, if this node takes a value."""
        for child in self.children:
            if child.is_placeholder:
                return child
        return None

    @property
    def takes_value(self) -> bool:
        return self.value_child is not None

    def get_child(self, name: str) -> Optional['HedTagEntry']:
        """
        Find a direct child by name (case-insensitive).

        Args:
            name: Child term to look for.

        Returns:
            The child entry, or None if there is no such child.
        """
        lowered = name.lower()
        for child in self.children:
            if child.name.lower() == lowered:
                return child
        return None

    def allows_extension(self) -> bool:
        """
        Check whether user extensions may be added below this node.

        extensionAllowed is inherited: it applies if this node or any
        ancestor carries it. Placeholder nodes never allow extension.
        """
        if self.is_placeholder:
            return False
        node = self
        while node is not None:
            if node.has_attribute(EXTENSION_ALLOWED):
                return True
            node = node.parent
        return False


@dataclass(eq=False)
class Unit(SchemaElement):
    """A unit of measurement belonging to a unit class."""


@dataclass(eq=False)
class UnitClass(SchemaElement):
    """A family of interchangeable units (e.g., 'timeUnits')."""

    units: list[Unit] = field(default_factory=list)
    """Units in document order."""

    def get_unit(self, name: str) -> Optional[Unit]:
        for unit in self.units:
            if unit.name == name:
                return unit
        return None


@dataclass(eq=False)
class UnitModifier(SchemaElement):
    """An SI prefix such as 'kilo' or 'm'."""


@dataclass(eq=False)
class ValueClass(SchemaElement):
    """A class of values a placeholder accepts (e.g., 'numericClass')."""


@dataclass(eq=False)
class AttributeDefinition(SchemaElement):
    """Declaration of a schema attribute."""

    properties: set[str] = field(default_factory=set)
    """Names of the properties describing this attribute (e.g., 'boolProperty')."""

    def has_property(self, name: str) -> bool:
        return name in self.properties


@dataclass(eq=False)
class PropertyDefinition(SchemaElement):
    """Declaration of an attribute property."""


@dataclass
class HedSchema:
    """Represents a complete loaded HED schema."""

    header: SchemaHeader = field(default_factory=SchemaHeader)
    """Schema header (library, version, partnering)."""

    root_tags: list[HedTagEntry] = field(default_factory=list)
    """Top-level nodes of the tag hierarchy."""

    unit_classes: dict[str, UnitClass] = field(default_factory=dict)
    unit_modifiers: dict[str, UnitModifier] = field(default_factory=dict)
    value_classes: dict[str, ValueClass] = field(default_factory=dict)
    attributes: dict[str, AttributeDefinition] = field(default_factory=dict)
    properties: dict[str, PropertyDefinition] = field(default_factory=dict)

    source: Optional[Path] = None
    """File the schema was loaded from, if any."""

    duplicate_definitions: list[tuple[str, str]] = field(default_factory=list)
    """(section, name) pairs of definitions that appeared more than once."""

    _term_index: dict[str, list[HedTagEntry]] = field(default_factory=dict, repr=False)

    @property
    def library(self) -> str:
        return self.header.library

    @property
    def version(self) -> str:
        return self.header.version

    @property
    def version_spec(self) -> VersionSpec:
        return VersionSpec(library=self.header.library, version=self.header.version)

    def add_tag(self, entry: HedTagEntry, parent: Optional[HedTagEntry] = None) -> HedTagEntry:
        """
        Attach a tag entry to the hierarchy and index its term.

        Args:
            entry: The entry to add.
            parent: Parent entry, or None to add a root node.

        Returns:
            The added entry (for chaining).
        """
        entry.parent = parent
        if parent is None:
            self.root_tags.append(entry)
        else:
            parent.children.append(entry)

        # Placeholders are not terms and are never looked up by name
        if not entry.is_placeholder:
            self._term_index.setdefault(entry.name.lower(), []).append(entry)
        return entry

    def add_unit_class(self, unit_class: UnitClass) -> None:
        self._add_definition(self.unit_classes, 'unit_classes', unit_class)

    def add_unit_modifier(self, modifier: UnitModifier) -> None:
        self._add_definition(self.unit_modifiers, 'unit_modifiers', modifier)

    def add_value_class(self, value_class: ValueClass) -> None:
        self._add_definition(self.value_classes, 'value_classes', value_class)

    def add_attribute(self, attribute: AttributeDefinition) -> None:
        self._add_definition(self.attributes, 'attributes', attribute)

    def add_property(self, prop: PropertyDefinition) -> None:
        self._add_definition(self.properties, 'properties', prop)

    def _add_definition(self, table: dict, section: str, element: SchemaElement) -> None:
        # First definition wins; later ones are recorded for the validator
        if element.name in table:
            self.duplicate_definitions.append((section, element.name))
            return
        table[element.name] = element

    def get_tag(self, term: str) -> Optional[HedTagEntry]:
        """
        Look up a tag entry by term (case-insensitive).

        Args:
            term: The term to search for (e.g., 'Change-lanes').

        Returns:
            The first entry with this term, or None if not found.
        """
        entries = self._term_index.get(term.lower())
        return entries[0] if entries else None

    def has_term(self, term: str) -> bool:
        return term.lower() in self._term_index

    def get_tag_by_long_name(self, long_name: str) -> Optional[HedTagEntry]:
        """
        Look up a tag entry by its full path from the root.

        Args:
            long_name: Path such as 'Action/Drive/Change-lanes'.

        Returns:
            The matching entry, or None if the path does not exist.
        """
        parts = [part for part in long_name.split('/') if part]
        if not parts:
            return None

        lowered = parts[0].lower()
        node = next((root for root in self.root_tags if root.name.lower() == lowered), None)
        for part in parts[1:]:
            if node is None:
                return None
            node = node.get_child(part)
        return node

    def iter_tags(self) -> Iterator[HedTagEntry]:
        """Iterate over all tag entries in depth-first document order."""
        stack = list(reversed(self.root_tags))
        while stack:
            entry = stack.pop()
            yield entry
            stack.extend(reversed(entry.children))

    def duplicate_terms(self) -> dict[str, list[HedTagEntry]]:
        """
        Get all terms defined more than once.

        Returns:
            Dictionary mapping lowercased term to all entries sharing it.
        """
        return {term: entries for term, entries in self._term_index.items() if len(entries) > 1}

    def get_unit(self, name: str) -> Optional[Unit]:
        """
        Look up a unit by name in any unit class.

        Args:
            name: Unit name as defined (e.g., 'second', 's').

        Returns:
            The first unit with this name, or None if not found.
        """
        for _, unit in self.iter_units():
            if unit.name == name:
                return unit
        return None

    def iter_units(self) -> Iterator[tuple[UnitClass, Unit]]:
        """Iterate over (unit class, unit) pairs for every unit in the schema."""
        for unit_class in self.unit_classes.values():
            for unit in unit_class.units:
                yield unit_class, unit

    def summary(self) -> dict:
        """
        Get summary statistics about the schema.

        Returns:
            Dictionary with the header fields and element counts.
        """
        tags = list(self.iter_tags())
        return {
            'library': self.header.library or None,
            'version': self.header.version,
            'with_standard': self.header.with_standard or None,
            'tags': len(tags),
            'root_tags': len(self.root_tags),
            'max_depth': max((entry.depth for entry in tags), default=0),
            'unit_classes': len(self.unit_classes),
            'units': sum(len(uc.units) for uc in self.unit_classes.values()),
            'unit_modifiers': len(self.unit_modifiers),
            'value_classes': len(self.value_classes),
            'attributes': len(self.attributes),
            'properties': len(self.properties),
        }
