"""Package version resolution."""
