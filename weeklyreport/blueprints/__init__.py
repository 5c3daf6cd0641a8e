"""JSON API blueprints; each subpackage registers its routes on import."""
