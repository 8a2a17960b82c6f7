"""RepoMind client core: request gateway, failure classification, chat and review orchestration."""
