"""Configuration, logging setup and the exception hierarchy."""
