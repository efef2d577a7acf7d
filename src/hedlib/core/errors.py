"""
Exceptions and issue records.

Loading and registry failures are raised as exceptions. Rule violations found
while validating a schema or resolving a tag are collected as HedIssue
records so that every problem can be reported at once.
"""

from dataclasses import dataclass
from typing import Optional


class HedError(Exception):
    """Base exception for HED schema handling errors."""
    pass


class HedFileError(HedError, ValueError):
    """Raised when a schema document cannot be parsed."""

    def __init__(self, message: str, source: Optional[str] = None, line: Optional[int] = None):
        self.source = source
        self.line = line
        location = source or "<string>"
        if line is not None:
            location = f"{location}:{line}"
        super().__init__(f"{location}: {message}")


class HedVersionError(HedError, ValueError):
    """Raised for malformed versions, version specs or conflicting library bindings."""
    pass


class HedTagError(HedError, ValueError):
    """Raised when a tag is converted but does not resolve against its schema."""

    def __init__(self, tag: str, issues: list['HedIssue']):
        self.tag = tag
        self.issues = issues
        details = "; ".join(issue.message for issue in issues) or "invalid tag"
        super().__init__(f"Invalid tag '{tag}': {details}")


ERROR = "error"
WARNING = "warning"


# Schema validation issue codes
HEADER_VERSION_INVALID = "HEADER_VERSION_INVALID"
HEADER_LIBRARY_INVALID = "HEADER_LIBRARY_INVALID"
HEADER_WITH_STANDARD_INVALID = "HEADER_WITH_STANDARD_INVALID"
FILE_NAME_MISMATCH = "FILE_NAME_MISMATCH"
TERM_DUPLICATED = "TERM_DUPLICATED"
DEFINITION_DUPLICATED = "DEFINITION_DUPLICATED"
TERM_INVALID = "TERM_INVALID"
ATTRIBUTE_UNDEFINED = "ATTRIBUTE_UNDEFINED"
ATTRIBUTE_NOT_APPLICABLE = "ATTRIBUTE_NOT_APPLICABLE"
ATTRIBUTE_VALUE_INVALID = "ATTRIBUTE_VALUE_INVALID"
PROPERTY_UNDEFINED = "PROPERTY_UNDEFINED"
UNIT_CLASS_UNDEFINED = "UNIT_CLASS_UNDEFINED"
VALUE_CLASS_UNDEFINED = "VALUE_CLASS_UNDEFINED"
DEFAULT_UNITS_INVALID = "DEFAULT_UNITS_INVALID"
TAG_REFERENCE_UNDEFINED = "TAG_REFERENCE_UNDEFINED"
PLACEHOLDER_INVALID = "PLACEHOLDER_INVALID"
ROOTED_INVALID = "ROOTED_INVALID"
DEPTH_EXCEEDED = "DEPTH_EXCEEDED"
TERM_CAPITALIZATION = "TERM_CAPITALIZATION"
DESCRIPTION_MISSING = "DESCRIPTION_MISSING"

# Tag resolution issue codes
TAG_EMPTY = "TAG_EMPTY"
PREFIX_INVALID = "PREFIX_INVALID"
PREFIX_UNKNOWN = "PREFIX_UNKNOWN"
TAG_INVALID = "TAG_INVALID"
TAG_EXTENSION_INVALID = "TAG_EXTENSION_INVALID"
TAG_EXTENSION_NOT_ALLOWED = "TAG_EXTENSION_NOT_ALLOWED"
TAG_REQUIRES_CHILD = "TAG_REQUIRES_CHILD"
VALUE_INVALID = "VALUE_INVALID"
UNITS_INVALID = "UNITS_INVALID"


@dataclass
class HedIssue:
    """A single problem found in a schema or a tag."""

    code: str
    """Issue code (e.g., 'ATTRIBUTE_UNDEFINED')."""

    message: str
    """Human-readable description of the problem."""

    severity: str = ERROR
    """Either 'error' or 'warning'."""

    element: Optional[str] = None
    """Name of the schema element or tag the issue refers to."""

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    def __str__(self) -> str:
        prefix = f"[{self.severity.upper()}] {self.code}"
        if self.element:
            return f"{prefix} ({self.element}): {self.message}"
        return f"{prefix}: {self.message}"
