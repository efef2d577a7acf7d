"""
HED schema vocabulary constants.

This module provides the names of the schema attributes and properties that
the loader, validator and resolver give a meaning to. A schema must still
declare every attribute and property it uses; these names are only looked up,
never assumed to exist.
"""

import re

PLACEHOLDER = "#"

# Characters allowed in a tag term
TERM_RE = re.compile(r'^[A-Za-z0-9_-]+$')

# Tag attributes with behaviour attached to them
EXTENSION_ALLOWED = "extensionAllowed"
TAKES_VALUE = "takesValue"
REQUIRE_CHILD = "requireChild"
UNIT_CLASS = "unitClass"
VALUE_CLASS = "valueClass"
SUGGESTED_TAG = "suggestedTag"
RELATED_TAG = "relatedTag"
ROOTED = "rooted"

# Unit and unit class attributes
DEFAULT_UNITS = "defaultUnits"
SI_UNIT = "SIUnit"
UNIT_SYMBOL = "unitSymbol"
UNIT_PREFIX = "unitPrefix"
SI_UNIT_MODIFIER = "SIUnitModifier"
SI_UNIT_SYMBOL_MODIFIER = "SIUnitSymbolModifier"

# Value class attributes and value classes with built-in syntax
ALLOWED_CHARACTER = "allowedCharacter"
NUMERIC_CLASS = "numericClass"
DATE_TIME_CLASS = "dateTimeClass"

# Attribute properties
BOOL_PROPERTY = "boolProperty"
UNIT_CLASS_PROPERTY = "unitClassProperty"
UNIT_PROPERTY = "unitProperty"
UNIT_MODIFIER_PROPERTY = "unitModifierProperty"
VALUE_CLASS_PROPERTY = "valueClassProperty"
ELEMENT_PROPERTY = "elementProperty"

# Element kinds an attribute can be attached to
TAG_ELEMENT = "tag"
UNIT_CLASS_ELEMENT = "unitClass"
UNIT_ELEMENT = "unit"
UNIT_MODIFIER_ELEMENT = "unitModifier"
VALUE_CLASS_ELEMENT = "valueClass"

# Mapping of element properties to the element kind they make an attribute apply to
ELEMENT_KIND_PROPERTIES = {
    UNIT_CLASS_PROPERTY: UNIT_CLASS_ELEMENT,
    UNIT_PROPERTY: UNIT_ELEMENT,
    UNIT_MODIFIER_PROPERTY: UNIT_MODIFIER_ELEMENT,
    VALUE_CLASS_PROPERTY: VALUE_CLASS_ELEMENT,
}

# Tag attributes whose values name other tags
TAG_REFERENCE_ATTRIBUTES = (SUGGESTED_TAG, RELATED_TAG)

# Named character groups usable in allowedCharacter
CHARACTER_GROUPS = {
    'letters': lambda ch: ch.isascii() and ch.isalpha(),
    'digits': lambda ch: ch.isascii() and ch.isdigit(),
    'blank': lambda ch: ch == ' ',
    'nonascii': lambda ch: not ch.isascii(),
    'printable': lambda ch: ch.isprintable(),
}

# Schema sections in document order, with display names
SCHEMA_SECTIONS = {
    'tags': 'Tags',
    'unit_classes': 'Unit classes',
    'unit_modifiers': 'Unit modifiers',
    'value_classes': 'Value classes',
    'attributes': 'Schema attributes',
    'properties': 'Properties',
}


def get_section_display_name(section: str) -> str:
    """
    Get the display name for a schema section key.

    Args:
        section: The section key (e.g., 'unit_classes').

    Returns:
        The display name (e.g., 'Unit classes'), or the key itself if unknown.
    """
    return SCHEMA_SECTIONS.get(section, section)
