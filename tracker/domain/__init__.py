"""Serialization helpers for stored artifacts."""
