"""Infrastructure layer - persistence, logging, executor and wiring."""
