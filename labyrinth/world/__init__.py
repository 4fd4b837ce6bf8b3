"""Maze model, topology generation, shapes and location placement."""
