"""Adapters for the document store and notification sink ports."""
