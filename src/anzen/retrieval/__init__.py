"""Online retrieval: category snapshot, similarity ranking and suggestions."""
