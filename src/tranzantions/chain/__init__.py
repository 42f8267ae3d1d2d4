"""Chain-indexing API clients."""
