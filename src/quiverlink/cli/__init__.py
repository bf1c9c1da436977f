"""quiverlink command-line interface."""
