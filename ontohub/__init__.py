"""Ontohub ingestion core.

Ontohub republishes ontology documents kept in GitHub repositories into a
shared SPARQL graph store. A signed webhook delivery records a queued
ingestion event and hands the work to a detached pipeline that fetches,
parses, validates, writes, and indexes the document.

Usage
-----
Serve the webhook API::

    python -m ontohub.runtime

Manage registrations from the command line::

    python -m ontohub.cli register octo ontology --registered-by alice
"""
