"""Maven repository access."""
