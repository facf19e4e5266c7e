"""Configuration and session relay infrastructure."""
