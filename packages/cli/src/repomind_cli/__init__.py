"""Command-line front-end for the RepoMind client."""
