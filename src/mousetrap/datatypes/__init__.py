"""Datatypes shared across the guard."""
