"""Business services: order core plus customer and product collaborators."""
