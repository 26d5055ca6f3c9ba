"""Cache backends and the TTL content cache."""
