"""
MediaWiki schema format loading.

The .mediawiki format is the text equivalent of the XML schema format:

    HED library="driving" version="1.0.0"

    '''Prologue'''
    Free text.

    !# start schema

    '''Action''' <nowiki>{extensionAllowed}[Things an agent does.]</nowiki>
    * Drive <nowiki>[Operate a vehicle.]</nowiki>
    ** Change-lanes <nowiki>[Move to an adjacent lane.]</nowiki>

    !# end schema

    '''Unit classes'''
    * timeUnits <nowiki>{defaultUnits=s}</nowiki>
    ** s <nowiki>{SIUnit, unitSymbol}</nowiki>

    '''Epilogue'''
    Free text.

    !# end hed

The number of leading '*' gives the nesting level below a root node.
"""

import re
from typing import Optional

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
from .logging_config import get_logger

logger = get_logger(__name__)


START_SCHEMA = '!# start schema'
END_SCHEMA = '!# end schema'
END_HED = '!# end hed'

_HEADER_ATTR_RE = re.compile(r'(\w+)\s*=\s*"([^"]*)"')
_HEADING_RE = re.compile(r"^'''(?P<title>[^']+)'''(?P<rest>.*)$")
_LINE_RE = re.compile(r'^(?P<stars>\**)\s*(?P<name>[^<]*?)\s*(?:<nowiki>(?P<body>.*)</nowiki>)?\s*$')
_BODY_RE = re.compile(r'^\s*(?:\{(?P<attrs>[^}]*)\})?\s*(?:\[(?P<desc>.*)\])?\s*$', re.DOTALL)

# Section titles (lowercased) to section keys
_SECTIONS = {
    'prologue': 'prologue',
    'unit classes': 'unit_classes',
    'unit modifiers': 'unit_modifiers',
    'value classes': 'value_classes',
    'schema attributes': 'attributes',
    'properties': 'properties',
    'epilogue': 'epilogue',
}


class WikiSchemaLoader:
    """
    Builds a HedSchema from a MediaWiki-format schema document.
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
        Parse a MediaWiki schema document.

        Args:
            text: The document contents.

        Returns:
            The loaded HedSchema.

        Raises:
            HedFileError: If the header is missing or a line cannot be parsed.
        """
        lines = text.splitlines()
        header_index, header = self._parse_header(lines)
        schema = HedSchema(header=header)

        section: Optional[str] = None
        in_tags = False
        tag_stack: list[HedTagEntry] = []
        current_unit_class: Optional[UnitClass] = None
        prologue: list[str] = []
        epilogue: list[str] = []

        for line_number, raw in enumerate(lines[header_index + 1:], start=header_index + 2):
            line = raw.rstrip()
            stripped = line.strip()

            if stripped == END_HED:
                break

            if stripped == START_SCHEMA:
                in_tags, section = True, None
                continue

            if stripped == END_SCHEMA:
                in_tags = False
                continue

            if in_tags:
                if stripped:
                    self._parse_tag_line(schema, stripped, tag_stack, line_number)
                continue

            heading = _HEADING_RE.match(stripped)
            if heading is not None:
                title = heading.group('title').strip().lower()
                if title not in _SECTIONS:
                    raise HedFileError(f"Unknown section '{heading.group('title')}'", self.source, line_number)
                section = _SECTIONS[title]
                current_unit_class = None
                continue

            # Free-text sections keep their lines verbatim
            if section == 'prologue':
                prologue.append(line)
                continue
            if section == 'epilogue':
                epilogue.append(line)
                continue

            if not stripped:
                continue

            if section is None:
                raise HedFileError(f"Content outside of any section: '{stripped}'", self.source, line_number)

            current_unit_class = self._parse_definition_line(
                schema, section, stripped, current_unit_class, line_number
            )

        schema.header.prologue = '\n'.join(prologue).strip()
        schema.header.epilogue = '\n'.join(epilogue).strip()
        logger.debug(f"Parsed MediaWiki schema {schema.version_spec} from {self.source or '<string>'}")
        return schema

    def _parse_header(self, lines: list[str]) -> tuple[int, SchemaHeader]:
        """
        Find and parse the 'HED ...' header line.

        Args:
            lines: All document lines.

        Returns:
            Index of the header line and the parsed header.
        """
        for index, line in enumerate(lines):
            stripped = line.strip()
            if not stripped:
                continue
            if not stripped.startswith('HED'):
                raise HedFileError("Document must start with a 'HED' header line", self.source, index + 1)

            attrs = dict(_HEADER_ATTR_RE.findall(stripped))
            version = attrs.get('version', '').strip()
            if not version:
                raise HedFileError("Header has no 'version' attribute", self.source, index + 1)

            header = SchemaHeader(
                version=version,
                library=attrs.get('library', '').strip(),
                with_standard=attrs.get('withStandard', '').strip(),
                unmerged=attrs.get('unmerged', '').strip().lower() == 'true',
            )
            return index, header

        raise HedFileError("Empty schema document", self.source)

    def _parse_tag_line(self, schema: HedSchema, line: str, stack: list[HedTagEntry], line_number: int) -> None:
        """
        Parse one line of the tag hierarchy and attach it to the schema.

        Args:
            schema: Schema being built.
            line: Stripped line text.
            stack: Current ancestry; stack[i] is the last node seen at level i.
            line_number: 1-based line number for error messages.
        """
        heading = _HEADING_RE.match(line)
        if heading is not None:
            level = 0
            content = heading.group('title') + heading.group('rest')
        else:
            if not line.startswith('*'):
                raise HedFileError(f"Tag line must start with '*' or '''Name''': '{line}'", self.source, line_number)
            level = len(line) - len(line.lstrip('*'))
            content = line[level:]

        if level > len(stack):
            raise HedFileError(
                f"Tag nested {level} levels deep without a parent at level {level - 1}",
                self.source, line_number
            )

        entry = self._build_element(HedTagEntry, content, line_number)
        parent = stack[level - 1] if level > 0 else None
        del stack[level:]
        stack.append(entry)
        schema.add_tag(entry, parent)

    def _parse_definition_line(self, schema: HedSchema, section: str, line: str,
                               current_unit_class: Optional[UnitClass], line_number: int) -> Optional[UnitClass]:
        """
        Parse one line of a definition section.

        Returns:
            The unit class subsequent '**' unit lines belong to.
        """
        level = len(line) - len(line.lstrip('*'))
        content = line[level:]

        if section == 'unit_classes':
            if level == 1:
                unit_class = self._build_element(UnitClass, content, line_number)
                schema.add_unit_class(unit_class)
                return unit_class
            if level == 2 and current_unit_class is not None:
                current_unit_class.units.append(self._build_element(Unit, content, line_number))
                return current_unit_class
            raise HedFileError(f"Misplaced unit class line: '{line}'", self.source, line_number)

        if level != 1:
            raise HedFileError(f"Definition lines must start with a single '*': '{line}'", self.source, line_number)

        if section == 'unit_modifiers':
            schema.add_unit_modifier(self._build_element(UnitModifier, content, line_number))
        elif section == 'value_classes':
            schema.add_value_class(self._build_element(ValueClass, content, line_number))
        elif section == 'attributes':
            # In this section the braces list the attribute's properties
            attribute = self._build_element(AttributeDefinition, content, line_number)
            attribute.properties.update(attribute.attributes.keys())
            attribute.attributes.clear()
            schema.add_attribute(attribute)
        elif section == 'properties':
            schema.add_property(self._build_element(PropertyDefinition, content, line_number))
        return None

    def _build_element(self, element_cls, content: str, line_number: int) -> SchemaElement:
        """
        Build a model element from 'Name <nowiki>{attrs}[description]</nowiki>'.

        Args:
            element_cls: Model class to instantiate.
            content: Line text without leading stars.
            line_number: 1-based line number for error messages.

        Returns:
            The built element.
        """
        match = _LINE_RE.match(content.strip())
        name = match.group('name').strip().strip("'").strip() if match else ''
        if not name:
            raise HedFileError(f"Missing element name: '{content.strip()}'", self.source, line_number)

        element = element_cls(name=name)
        body = match.group('body') or ''

        # Attributes come before the description; braces inside it are text
        body_match = _BODY_RE.match(body)
        if body_match is None:
            raise HedFileError(f"Malformed element body: '{body.strip()}'", self.source, line_number)
        if body_match.group('attrs') is not None:
            _apply_attribute_text(element, body_match.group('attrs'))
        if body_match.group('desc') is not None:
            element.description = body_match.group('desc').strip()

        return element


def _apply_attribute_text(element: SchemaElement, text: str) -> None:
    """Apply 'name, name=value, ...' attribute text to an element."""
    for item in text.split(','):
        item = item.strip()
        if not item:
            continue
        if '=' in item:
            name, value = item.split('=', 1)
            element.set_attribute(name.strip(), value.strip())
        else:
            element.set_attribute(item, True)
