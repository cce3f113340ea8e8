"""HTTP surface for the ranker."""
