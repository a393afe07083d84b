"""Decanter application package."""
