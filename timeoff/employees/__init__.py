"""Employee registry: identity, display name and reporting line."""
