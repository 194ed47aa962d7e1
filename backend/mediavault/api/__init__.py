"""HTTP API package for MediaVault."""
