"""Object storage service clients."""
