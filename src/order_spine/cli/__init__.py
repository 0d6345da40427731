"""Command-line interface (``order-spine``)."""
