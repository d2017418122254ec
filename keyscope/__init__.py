"""Keyscope - Redis key and value inspector."""
