"""Kernel – error taxonomy shared by every layer."""
