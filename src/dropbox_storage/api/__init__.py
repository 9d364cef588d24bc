"""Dropbox API v2 client layer."""
