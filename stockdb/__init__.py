"""stockdb: daily bar repository and trailing-window price analytics."""
