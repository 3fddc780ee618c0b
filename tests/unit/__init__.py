"""Unit tests for the store and its lock."""
