"""Settings, logging setup and prompt templates."""
