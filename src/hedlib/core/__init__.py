"""Core domain logic package.

This package contains the in-memory schema model and the pure logic for
schema validation, version handling and namespace resolution.
"""
