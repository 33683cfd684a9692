"""Protocol primitives, configuration and errors."""
