"""Textual operator interface."""
