"""anzen: labor-accident category matching and safety guidance.

The package builds a catalog of accident categories from published case
reports, enriches each category with embeddings and translations, and serves a
semantic search that maps a work description to the closest category along
with generated safety suggestions.
"""
