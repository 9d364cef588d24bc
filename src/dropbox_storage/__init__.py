"""Dropbox storage adapter for the generic filesystem interface."""

__version__ = "0.1.0"
