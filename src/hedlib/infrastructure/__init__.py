"""
Infrastructure layer package.

This package contains modules for interacting with the outside world:
- Schema document parsing (XML and MediaWiki)
- BIDS dataset_description.json reading
- Logging configuration
- Path utilities
"""
