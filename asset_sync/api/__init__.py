"""HTTP webhook receiving host platform events."""
