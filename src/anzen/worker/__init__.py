"""Batch workers for the offline catalog pipeline."""
