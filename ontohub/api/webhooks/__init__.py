"""GitHub webhook ingress."""
