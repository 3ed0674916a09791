"""Independent verification sources and the engine that combines them."""
