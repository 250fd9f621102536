"""Shared library code for Acorn (AWS clients, config, secrets)."""
