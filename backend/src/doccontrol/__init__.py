"""Document control backend: sequential approval workflows for project documents."""
