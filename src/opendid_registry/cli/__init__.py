"""Command line interface for opendid-registry."""
