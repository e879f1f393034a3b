"""Layer 2: V2 corner junctions and contour tracing."""
