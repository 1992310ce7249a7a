"""Import resolution, dependency graph walking and diagnostics."""
