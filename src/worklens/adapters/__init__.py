"""Document store adapters and seed-file loading."""
