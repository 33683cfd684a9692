"""Hashing and byte-encoding helpers."""
