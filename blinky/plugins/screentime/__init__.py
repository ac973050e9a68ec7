"""Screen-time store: append-only usage snapshots per identity."""
