"""Ports to external collaborators."""
