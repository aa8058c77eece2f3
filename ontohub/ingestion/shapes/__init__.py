"""Bundled SHACL shapes applied to every ingested document."""
