"""Core filestore abstractions, error taxonomy, and logging."""
