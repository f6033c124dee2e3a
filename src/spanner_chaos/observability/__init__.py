"""Observability – logging for the harness components."""
