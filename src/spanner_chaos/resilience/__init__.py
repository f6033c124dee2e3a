"""Resilience – retry policies used by the reference client."""
