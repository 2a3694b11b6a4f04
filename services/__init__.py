"""Application services: registration, verification, login and profiles."""
