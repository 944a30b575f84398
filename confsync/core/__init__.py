"""Models, settings and errors shared across confsync."""
