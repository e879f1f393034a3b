"""Layer 1: V1 orientation columns."""
