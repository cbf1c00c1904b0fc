"""Job entrypoints, one module per pipeline stage."""
