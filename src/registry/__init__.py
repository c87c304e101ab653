"""Remote package registries."""
