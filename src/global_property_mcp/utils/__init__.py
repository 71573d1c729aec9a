"""Calculation engine, configuration and formatting helpers."""
