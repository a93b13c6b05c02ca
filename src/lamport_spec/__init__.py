"""Python specification of the Lamport one-time hash-based signature scheme."""
