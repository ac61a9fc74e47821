"""Configuration layer: settings discovery, settings model, logging setup."""
