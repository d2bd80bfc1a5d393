"""Packaged resources for crossbuild."""
