"""
Namespace resolution for HED tags.

A tag string such as 'dp:Action/Drive/Change-lanes' names a schema through
its nickname prefix ('dp') and a path in that schema's hierarchy. Paths may
be written in long form (from a root node), in short form (the term alone)
or in any intermediate form, and may end with a user extension or, for
value-taking nodes, a value with optional units.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from ..infrastructure.logging_config import get_logger
from . import errors
from .errors import HedIssue, HedTagError
from .models import HedSchema, HedTagEntry, UnitClass
from .registry import SchemaRegistry
from .schema_constants import (
    ALLOWED_CHARACTER,
    CHARACTER_GROUPS,
    DATE_TIME_CLASS,
    NUMERIC_CLASS,
    REQUIRE_CHILD,
    SI_UNIT,
    SI_UNIT_MODIFIER,
    SI_UNIT_SYMBOL_MODIFIER,
    TERM_RE,
    UNIT_CLASS,
    UNIT_PREFIX,
    UNIT_SYMBOL,
    VALUE_CLASS,
)
from .versions import is_valid_name

logger = get_logger(__name__)

_NUMERIC_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')
_DATE_TIME_RE = re.compile(
    r'^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$'
)


@dataclass
class ResolvedTag:
    """The result of resolving one tag string against its schema."""

    tag: str
    """The tag string as given."""

    prefix: str = ''
    """Namespace nickname; empty for unprefixed tags."""

    schema: Optional[HedSchema] = field(default=None, repr=False)
    """Schema the prefix resolved to."""

    entry: Optional[HedTagEntry] = None
    """Deepest schema node matched by the path."""

    extension: list[str] = field(default_factory=list)
    """User extension terms below the matched node."""

    value: Optional[str] = None
    """Value given to a value-taking node, without units."""

    units: Optional[str] = None
    """Units given with the value, if any."""

    value_text: Optional[str] = None
    """Value exactly as written, including units."""

    issues: list[HedIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.entry is not None and not any(issue.is_error for issue in self.issues)

    @property
    def long_form(self) -> Optional[str]:
        """Path from the root node, with the prefix, extension or value kept."""
        if self.entry is None:
            return None
        return self._format(self.entry.long_name)

    @property
    def short_form(self) -> Optional[str]:
        """Term alone, with the prefix, extension or value kept."""
        if self.entry is None:
            return None
        return self._format(self.entry.name)

    def _format(self, base: str) -> str:
        parts = [base] + self.extension
        if self.value_text is not None:
            parts.append(self.value_text)
        path = '/'.join(parts)
        return f"{self.prefix}:{path}" if self.prefix else path


def split_prefix(tag: str) -> tuple[Optional[str], str]:
    """
    Split a tag into its namespace prefix and path.

    Only a colon before the first '/' introduces a prefix, so values such as
    'Clock-face/12:30' are left alone.

    Args:
        tag: The tag string.

    Returns:
        (prefix, path) where prefix is None if the tag has no prefix.
    """
    text = tag.strip()
    colon = text.find(':')
    slash = text.find('/')
    if colon == -1 or (slash != -1 and colon > slash):
        return None, text
    return text[:colon].strip(), text[colon + 1:].strip()


def split_hed_string(hed_string: str) -> list[str]:
    """
    Split a comma-separated annotation into individual tag strings.

    Grouping parentheses are dropped; only the tags are returned.

    Args:
        hed_string: An annotation such as 'Red, (dp:Drive, Item)'.

    Returns:
        List of non-empty tag strings in order.
    """
    flattened = hed_string.replace('(', ',').replace(')', ',')
    return [part.strip() for part in flattened.split(',') if part.strip()]


class NamespaceResolver:
    """
    Resolves prefixed tags against the schemas bound in a registry.
    """

    def __init__(self, registry: SchemaRegistry):
        """
        Initialize the resolver.

        Args:
            registry: Registry mapping nicknames to loaded schemas.
        """
        self.registry = registry
        self._unit_cache: dict[UnitClass, dict[str, bool]] = {}

    @classmethod
    def for_schema(cls, schema: HedSchema, nickname: str = '') -> 'NamespaceResolver':
        """
        Build a resolver over a single schema.

        Args:
            schema: The schema to resolve against.
            nickname: Prefix to bind it to; empty for unprefixed tags.

        Returns:
            A resolver with a one-entry registry.
        """
        registry = SchemaRegistry()
        registry.register(schema, nickname)
        return cls(registry)

    def resolve(self, tag: str) -> ResolvedTag:
        """
        Resolve a tag string.

        Args:
            tag: Tag such as 'dp:Drive/Change-lanes' or 'Duration/3 s'.

        Returns:
            The ResolvedTag; its issues list explains any failure.
        """
        result = ResolvedTag(tag=tag)

        if not tag or not tag.strip():
            self._fail(result, errors.TAG_EMPTY, "Tag is empty")
            return result

        prefix, path = split_prefix(tag)
        if prefix is not None:
            if not is_valid_name(prefix):
                self._fail(result, errors.PREFIX_INVALID, f"Prefix '{prefix}' must contain only letters")
                return result
            result.prefix = prefix

        schema = self.registry.get_schema(result.prefix)
        if schema is None:
            if result.prefix:
                message = f"No schema is bound to prefix '{result.prefix}'"
            else:
                message = "No schema is bound for unprefixed tags"
            self._fail(result, errors.PREFIX_UNKNOWN, message)
            return result
        result.schema = schema

        parts = [part.strip() for part in path.split('/')]
        if any(not part for part in parts):
            self._fail(result, errors.TAG_EMPTY, f"Tag '{tag}' has an empty path component")
            return result

        entry = schema.get_tag(parts[0])
        if entry is None:
            self._fail(result, errors.TAG_INVALID, f"'{parts[0]}' is not a term of schema {schema.version_spec}")
            return result

        # Walk down as far as the path follows the hierarchy
        index = 1
        while index < len(parts):
            child = entry.get_child(parts[index])
            if child is None or child.is_placeholder:
                break
            entry = child
            index += 1
        result.entry = entry

        remainder = parts[index:]
        if not remainder:
            if entry.has_attribute(REQUIRE_CHILD):
                self._fail(result, errors.TAG_REQUIRES_CHILD, f"'{entry.name}' must be followed by a child or value")
            return result

        placeholder = entry.value_child
        if placeholder is not None:
            if len(remainder) > 1:
                self._fail(result, errors.VALUE_INVALID, f"Value '{'/'.join(remainder)}' cannot contain '/'")
            else:
                self._check_value(result, schema, placeholder, remainder[0])
            return result

        self._check_extension(result, schema, entry, remainder)
        return result

    def resolve_string(self, hed_string: str) -> list[ResolvedTag]:
        """
        Resolve every tag of a comma-separated annotation.

        Args:
            hed_string: The annotation text.

        Returns:
            One ResolvedTag per tag, in order.
        """
        return [self.resolve(tag) for tag in split_hed_string(hed_string)]

    def to_long_form(self, tag: str) -> str:
        """
        Convert a tag to long form.

        Raises:
            HedTagError: If the tag does not resolve.
        """
        result = self._resolve_or_raise(tag)
        return result.long_form

    def to_short_form(self, tag: str) -> str:
        """
        Convert a tag to short form.

        Raises:
            HedTagError: If the tag does not resolve.
        """
        result = self._resolve_or_raise(tag)
        return result.short_form

    def _resolve_or_raise(self, tag: str) -> ResolvedTag:
        result = self.resolve(tag)
        if not result.is_valid:
            raise HedTagError(tag, [issue for issue in result.issues if issue.is_error])
        return result

    def _fail(self, result: ResolvedTag, code: str, message: str) -> None:
        logger.debug(f"{result.tag!r}: {code}: {message}")
        result.issues.append(HedIssue(code=code, message=message, element=result.tag))

    def _check_extension(self, result: ResolvedTag, schema: HedSchema,
                         entry: HedTagEntry, remainder: list[str]) -> None:
        """Accept trailing parts as a user extension if the schema allows it."""
        for part in remainder:
            existing = schema.get_tag(part)
            if existing is not None:
                self._fail(
                    result, errors.TAG_EXTENSION_INVALID,
                    f"'{part}' already exists in the schema as '{existing.long_name}' "
                    f"and cannot be used below '{entry.long_name}'"
                )
                return
            if not TERM_RE.match(part):
                self._fail(
                    result, errors.TAG_EXTENSION_INVALID,
                    f"Extension '{part}' may only contain letters, digits, '-' and '_'"
                )
                return

        if not entry.allows_extension():
            self._fail(
                result, errors.TAG_EXTENSION_NOT_ALLOWED,
                f"'{entry.long_name}' does not allow extension with '{'/'.join(remainder)}'"
            )
            return

        result.extension = remainder

    def _check_value(self, result: ResolvedTag, schema: HedSchema,
                     placeholder: HedTagEntry, text: str) -> None:
        """
        Split a value from its units and check both against the placeholder's classes.

        Args:
            result: Result to update.
            schema: Schema the placeholder belongs to.
            placeholder: The '#' node receiving the value.
            text: The value as written (e.g., '3 ms').
        """
        result.value_text = text

        unit_classes = [
            schema.unit_classes[name]
            for name in placeholder.attribute_values(UNIT_CLASS)
            if name in schema.unit_classes
        ]

        value, units = text, None
        if unit_classes:
            value, units = self._split_units(schema, unit_classes, text)
            if units is None and ' ' in text.strip():
                number, _, candidate = text.strip().rpartition(' ')
                if _NUMERIC_RE.match(number.strip()):
                    self._fail(
                        result, errors.UNITS_INVALID,
                        f"'{candidate}' is not a unit of {', '.join(uc.name for uc in unit_classes)}"
                    )
                    return

        result.value, result.units = value, units

        if not value:
            self._fail(result, errors.VALUE_INVALID, "Value is empty")
            return

        class_names = placeholder.attribute_values(VALUE_CLASS)
        value_classes = [schema.value_classes[name] for name in class_names if name in schema.value_classes]
        if not value_classes:
            return

        if not any(self._value_matches_class(value, value_class) for value_class in value_classes):
            self._fail(
                result, errors.VALUE_INVALID,
                f"'{value}' is not a valid {' or '.join(vc.name for vc in value_classes)} value"
            )

    def _split_units(self, schema: HedSchema, unit_classes: list[UnitClass],
                     text: str) -> tuple[str, Optional[str]]:
        """
        Separate units from a value.

        Units follow the value after a blank ('3 ms'), or precede it for
        units marked unitPrefix ('$50', '$ 50').

        Returns:
            (value, units) with units None if no unit was recognized.
        """
        tokens = text.split()
        if not tokens:
            return '', None

        if len(tokens) >= 2:
            unit = self._match_unit(schema, unit_classes, tokens[-1])
            if unit is not None:
                return ' '.join(tokens[:-1]), unit
            unit = self._match_unit(schema, unit_classes, tokens[0], prefix_only=True)
            if unit is not None:
                return ' '.join(tokens[1:]), unit
            return text.strip(), None

        single = tokens[0]
        for unit_class in unit_classes:
            for unit in unit_class.units:
                if unit.has_attribute(UNIT_PREFIX) and single.startswith(unit.name) and len(single) > len(unit.name):
                    return single[len(unit.name):], unit.name
        return single, None

    def _match_unit(self, schema: HedSchema, unit_classes: list[UnitClass],
                    candidate: str, prefix_only: bool = False) -> Optional[str]:
        for unit_class in unit_classes:
            if prefix_only:
                for unit in unit_class.units:
                    if unit.has_attribute(UNIT_PREFIX) and unit.name == candidate:
                        return unit.name
                continue

            for unit_string, case_sensitive in self._allowed_units(schema, unit_class).items():
                if case_sensitive and candidate == unit_string:
                    return unit_string
                if not case_sensitive and candidate.lower() == unit_string.lower():
                    return unit_string
        return None

    def _allowed_units(self, schema: HedSchema, unit_class: UnitClass) -> dict[str, bool]:
        """
        Expand a unit class into every accepted unit spelling.

        Unit symbols are case-sensitive and take symbol modifiers ('ms');
        unit names are case-insensitive, may be plural and take named
        modifiers ('milliseconds').

        Returns:
            Mapping of unit spelling to whether it is case-sensitive.
        """
        if unit_class in self._unit_cache:
            return self._unit_cache[unit_class]

        allowed: dict[str, bool] = {}
        for unit in unit_class.units:
            is_symbol = unit.has_attribute(UNIT_SYMBOL)
            spellings = [unit.name] if is_symbol else [unit.name, _plural(unit.name)]
            for spelling in spellings:
                allowed[spelling] = is_symbol

            if not unit.has_attribute(SI_UNIT):
                continue

            modifier_attr = SI_UNIT_SYMBOL_MODIFIER if is_symbol else SI_UNIT_MODIFIER
            for modifier in schema.unit_modifiers.values():
                if modifier.has_attribute(modifier_attr):
                    for spelling in spellings:
                        allowed[modifier.name + spelling] = is_symbol

        self._unit_cache[unit_class] = allowed
        return allowed

    @staticmethod
    def _value_matches_class(value: str, value_class) -> bool:
        allowed = value_class.attribute_values(ALLOWED_CHARACTER)
        if allowed:
            for ch in value:
                if not any(_character_allowed(ch, rule) for rule in allowed):
                    return False

        if value_class.name == NUMERIC_CLASS:
            return _NUMERIC_RE.match(value) is not None
        if value_class.name == DATE_TIME_CLASS:
            return _DATE_TIME_RE.match(value) is not None
        return True


def _character_allowed(ch: str, rule: str) -> bool:
    group = CHARACTER_GROUPS.get(rule)
    if group is not None:
        return group(ch)
    return ch == rule


def _plural(name: str) -> str:
    return name if name.endswith('s') else name + 's'
