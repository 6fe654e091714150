"""Plaid adapter."""
