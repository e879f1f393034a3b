"""visionpath — feed-forward model of the early visual pathway."""

__version__ = "0.1.0"
