"""Optional host operations: port preparation and the smoke test."""
