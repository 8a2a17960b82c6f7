"""Client-side state for RepoMind: key/value backends and the Identity Store."""
