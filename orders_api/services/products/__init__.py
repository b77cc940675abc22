"""Product catalog: repository and CRUD service."""
