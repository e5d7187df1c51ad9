"""Bundled bank rule definitions (YAML, one file per institution)."""
