"""CNF encoding of an edge-matching puzzle: variable layout, clause families and writers."""
