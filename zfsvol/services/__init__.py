"""Plugin API transport."""
