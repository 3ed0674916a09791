"""Content generation: industry taxonomy, stages, defaults, branding and orchestration."""
