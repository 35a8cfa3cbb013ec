"""Command-line interface for slo-combine."""
