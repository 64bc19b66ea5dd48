"""Per-guild guard configuration persistence."""
