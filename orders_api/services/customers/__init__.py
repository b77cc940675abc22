"""Customer directory: repository and CRUD service."""
