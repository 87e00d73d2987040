"""Availability & booking slot reservation engine."""
