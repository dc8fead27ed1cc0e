"""Command-line helpers and debug instrumentation."""
