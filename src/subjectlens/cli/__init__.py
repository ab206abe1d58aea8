"""Command line interface for subjectlens."""
