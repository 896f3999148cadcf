"""Concrete transport and capture implementations."""
