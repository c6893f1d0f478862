"""Application layer - services, caches and use cases orchestrating the domain."""
