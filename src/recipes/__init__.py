"""The change-parent recipe and its collaborators."""
