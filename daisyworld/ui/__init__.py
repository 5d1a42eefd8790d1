"""Display collaborators."""
