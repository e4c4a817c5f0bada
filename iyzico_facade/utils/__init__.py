"""Signing and request helpers."""
