"""
Tests for guarded JSON decoding module.
"""
