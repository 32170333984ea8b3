"""Utilities for turning timestamped location tables into event tracks.

This package provides modular building blocks to read rows from SQLite or CSV
sources, classify columns by name, segment points into events on time gaps,
accumulate travelled distance, and project the result to KML or CSV.
"""
