"""HTTP surface of the plotting service."""
