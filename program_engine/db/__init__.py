"""Relational persistence."""
