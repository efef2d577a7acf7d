"""
HED schema loading.

This module is responsible for reading HED schema documents and constructing
the in-memory HedSchema. The XML format is parsed here; the equivalent
MediaWiki format is handled by wiki_loader and dispatched from load_schema().
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, Optional

from ..core.errors import HedFileError
from ..core.models import (
    HedSchema,
    HedTagEntry,
    SchemaElement,
    SchemaHeader,
    Unit,
    UnitClass,
    UnitModifier,
    ValueClass,
    AttributeDefinition,
    PropertyDefinition,
)
from ..core.versions import SCHEMA_EXTENSIONS, schema_file_name
from .logging_config import get_logger
from .wiki_loader import WikiSchemaLoader

logger = get_logger(__name__)


class SchemaLoader:
    """
    Builds a HedSchema from a HED XML document.

    The document root is a HED element whose attributes form the header.
    Its children are the prologue, the tag hierarchy (schema/node...), the
    definition sections and the epilogue.
    """

    def __init__(self, source: Optional[str] = None):
        """
        Initialize the loader.

        Args:
            source: Name of the document being parsed, used in error messages.
        """
        self.source = source

    def parse(self, text: str) -> HedSchema:
        """
        Parse an XML schema document.

        Args:
            text: The XML document.

        Returns:
            The loaded HedSchema.

        Raises:
            HedFileError: If the document is not well-formed or is not a HED schema.
        """
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            line = e.position[0] if getattr(e, 'position', None) else None
            raise HedFileError(f"Malformed XML: {e}", self.source, line) from e

        if root.tag != 'HED':
            raise HedFileError(f"Root element must be 'HED', found '{root.tag}'", self.source)

        schema = HedSchema(header=self._parse_header(root))
        logger.debug(f"Parsing schema {schema.version_spec} from {self.source or '<string>'}")

        # Tag hierarchy
        tag_section = root.find('schema')
        if tag_section is not None:
            for node in tag_section.findall('node'):
                self._parse_node(schema, node, None)

        # Definition sections
        self._parse_unit_classes(schema, root)
        self._parse_definitions(
            root, 'unitModifierDefinitions', 'unitModifierDefinition',
            UnitModifier, schema.add_unit_modifier
        )
        self._parse_definitions(
            root, 'valueClassDefinitions', 'valueClassDefinition',
            ValueClass, schema.add_value_class
        )
        self._parse_attribute_definitions(schema, root)
        self._parse_definitions(
            root, 'propertyDefinitions', 'propertyDefinition',
            PropertyDefinition, schema.add_property
        )

        return schema

    def _parse_header(self, root: ET.Element) -> SchemaHeader:
        """
        Read the header attributes and the prologue/epilogue text.

        Args:
            root: The HED root element.

        Returns:
            The schema header.
        """
        version = root.get('version')
        if not version:
            raise HedFileError("HED element has no 'version' attribute", self.source)

        return SchemaHeader(
            version=version.strip(),
            library=(root.get('library') or '').strip(),
            with_standard=(root.get('withStandard') or '').strip(),
            unmerged=(root.get('unmerged') or '').strip().lower() == 'true',
            prologue=_child_text(root, 'prologue'),
            epilogue=_child_text(root, 'epilogue'),
        )

    def _parse_node(self, schema: HedSchema, node: ET.Element, parent: Optional[HedTagEntry]) -> None:
        """
        Recursively add a node element and its children to the schema.

        Args:
            schema: Schema being built.
            node: The node element.
            parent: Parent entry, or None for a root node.
        """
        name = _child_text(node, 'name')
        if not name:
            raise HedFileError(
                f"Tag node without a name under '{parent.long_name if parent else 'schema'}'",
                self.source
            )

        entry = HedTagEntry(name=name, description=_child_text(node, 'description'))
        self._read_attributes(node, entry)
        schema.add_tag(entry, parent)

        for child in node.findall('node'):
            self._parse_node(schema, child, entry)

    def _parse_unit_classes(self, schema: HedSchema, root: ET.Element) -> None:
        section = root.find('unitClassDefinitions')
        if section is None:
            return

        for definition in section.findall('unitClassDefinition'):
            unit_class = self._build_element(definition, UnitClass)
            for unit_elem in definition.findall('unit'):
                unit_class.units.append(self._build_element(unit_elem, Unit))
            schema.add_unit_class(unit_class)
            logger.debug(f"Unit class '{unit_class.name}' with {len(unit_class.units)} units")

    def _parse_attribute_definitions(self, schema: HedSchema, root: ET.Element) -> None:
        section = root.find('schemaAttributeDefinitions')
        if section is None:
            return

        for definition in section.findall('schemaAttributeDefinition'):
            attribute = self._build_element(definition, AttributeDefinition)
            for prop in definition.findall('property'):
                prop_name = _child_text(prop, 'name')
                if prop_name:
                    attribute.properties.add(prop_name)
            schema.add_attribute(attribute)

    def _parse_definitions(self, root: ET.Element, section_tag: str, item_tag: str, element_cls, add) -> None:
        """
        Parse a flat definition section.

        Args:
            root: The HED root element.
            section_tag: Section element name (e.g., 'valueClassDefinitions').
            item_tag: Item element name (e.g., 'valueClassDefinition').
            element_cls: Model class to build for each item.
            add: Schema method adding one built element.
        """
        section = root.find(section_tag)
        if section is None:
            return

        for definition in section.findall(item_tag):
            add(self._build_element(definition, element_cls))

    def _build_element(self, elem: ET.Element, element_cls):
        name = _child_text(elem, 'name')
        if not name:
            raise HedFileError(f"<{elem.tag}> without a name", self.source)

        element = element_cls(name=name, description=_child_text(elem, 'description'))
        self._read_attributes(elem, element)
        return element

    def _read_attributes(self, elem: ET.Element, element: SchemaElement) -> None:
        """
        Copy the attribute children of an element onto a model element.

        Valueless attributes are stored as True; multiple values are
        comma-joined.

        Args:
            elem: XML element holding attribute children.
            element: Model element to update.
        """
        for attribute in elem.findall('attribute'):
            attr_name = _child_text(attribute, 'name')
            if not attr_name:
                raise HedFileError(f"Attribute without a name on '{element.name}'", self.source)

            values = [
                (value.text or '').strip()
                for value in attribute.findall('value')
                if (value.text or '').strip()
            ]
            if values:
                for value in values:
                    element.set_attribute(attr_name, value)
            else:
                element.set_attribute(attr_name, True)


def _child_text(elem: ET.Element, tag: str) -> str:
    child = elem.find(tag)
    if child is None or child.text is None:
        return ''
    return child.text.strip()


def load_schema_from_string(text: str, schema_format: str = 'xml', source: Optional[str] = None) -> HedSchema:
    """
    Load a schema from an in-memory document.

    Args:
        text: Document contents.
        schema_format: 'xml' or 'mediawiki'.
        source: Optional name for error messages.

    Returns:
        The loaded HedSchema.

    Raises:
        HedFileError: If the document cannot be parsed.
        ValueError: If the format is not supported.
    """
    schema_format = schema_format.lower().lstrip('.')
    if schema_format == 'xml':
        return SchemaLoader(source).parse(text)
    if schema_format == 'mediawiki':
        return WikiSchemaLoader(source).parse(text)
    raise ValueError(f"Unsupported schema format: {schema_format}")


def load_schema(path: Path) -> HedSchema:
    """
    Load a schema file, choosing the parser from its extension.

    Args:
        path: Path to a .xml or .mediawiki schema file.

    Returns:
        The loaded HedSchema with its source set.

    Raises:
        FileNotFoundError: If the file does not exist.
        HedFileError: If the file cannot be parsed.
        ValueError: If the extension is not a supported schema format.
    """
    path = Path(path)
    logger.info(f"Loading HED schema from: {path}")

    if not path.exists():
        raise FileNotFoundError(f"Schema file does not exist: {path}")

    extension = path.suffix.lower()
    if extension not in SCHEMA_EXTENSIONS:
        raise ValueError(f"Unsupported schema file extension '{path.suffix}': {path}")

    try:
        text = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise HedFileError(f"File is not valid UTF-8: {e}", str(path)) from e

    schema = load_schema_from_string(text, extension, source=str(path))
    schema.source = path

    summary = schema.summary()
    logger.info(
        f"Loaded schema {schema.version_spec}: {summary['tags']} tags, "
        f"{summary['unit_classes']} unit classes, {summary['attributes']} attributes"
    )
    return schema


def find_schema_file(library: str, version: str, search_dirs: Iterable[Path]) -> Optional[Path]:
    """
    Locate a schema file by the naming convention.

    XML files are preferred over MediaWiki files in the same directory.

    Args:
        library: Library name, or empty for the standard schema.
        version: Semantic version.
        search_dirs: Directories to search, in priority order.

    Returns:
        Path to the first matching file, or None if not found.
    """
    for directory in search_dirs:
        for extension in SCHEMA_EXTENSIONS:
            candidate = Path(directory) / schema_file_name(library, version, extension)
            if candidate.is_file():
                logger.debug(f"Found schema file: {candidate}")
                return candidate

    logger.debug(f"No schema file for {library or 'standard'} {version} in search directories")
    return None
