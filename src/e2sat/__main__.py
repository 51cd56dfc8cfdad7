"""Entry point for `python -m e2sat`."""

from e2sat import main

main()
