"""Shared test fixtures and fake plugins."""
