"""IO adapters: the boundary between the resolver core and the host."""
