"""Application services shared by the blueprints."""
