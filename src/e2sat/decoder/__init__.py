"""Decoding of SAT solver output into a board, and serialization of the board."""
