"""Printable safety reports for a matched category."""
