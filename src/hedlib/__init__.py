"""
HEDLIB - HED library schema loading, validation and namespace resolution.

This package provides tools for loading HED (Hierarchical Event Descriptors)
library schemas, checking them against the library schema rules, and
resolving namespace-prefixed tags against the schemas a BIDS dataset
declares in its dataset_description.json.
"""

__version__ = "0.1.0"
