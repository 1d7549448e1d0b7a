"""Tests for ape-commands."""
