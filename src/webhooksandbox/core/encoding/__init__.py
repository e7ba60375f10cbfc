"""Serialization of domain models to JSON and NDJSON."""
