"""Adapters implementing datarepo ports."""
