"""Logging and console output helpers."""
