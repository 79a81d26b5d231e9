"""Blog API backend."""
