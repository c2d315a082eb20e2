"""Test suite for the yamlstream package.

This package contains unit and integration tests validating event
extraction, document composition, input adapters, error reporting
and the parser lifecycle against every available engine.
"""
