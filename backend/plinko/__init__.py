"""Provably-fair Plinko round server."""
