"""Deployable webhook entry points."""
