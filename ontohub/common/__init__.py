"""Small helpers shared across Ontohub packages."""
