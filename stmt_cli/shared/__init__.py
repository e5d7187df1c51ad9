"""Ambient helpers shared by the stmt-rules tools (config, logging, CLI glue)."""
