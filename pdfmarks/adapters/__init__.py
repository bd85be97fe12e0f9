"""Concrete implementations of core ports."""
