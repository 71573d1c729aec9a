"""Valuation and report records."""
