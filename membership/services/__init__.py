"""Membership services (collaborator clients + domain rules)."""
