"""Teller direct bank API adapter."""
