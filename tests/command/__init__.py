"""
Tests for subcommands.
"""
