"""External collaborator ports."""
