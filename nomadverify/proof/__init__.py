"""Self proof request construction and universal link derivation."""
