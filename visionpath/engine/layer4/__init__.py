"""Layer 4: scalar feature summaries."""
