"""Layer 0: retinal center-surround edge detection."""
