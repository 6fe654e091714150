"""Stripe adapter."""
