"""Annotation lifecycle engine: parsing, estimation, decisions and edit planning."""
