"""Generated media attached to categories."""
