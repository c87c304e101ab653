"""Version constraints, metadata cache and parent version resolution."""
