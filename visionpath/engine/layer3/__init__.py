"""Layer 3: V4 shape detectors."""
