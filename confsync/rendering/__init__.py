"""Template compilation, rendering and file comparison."""
