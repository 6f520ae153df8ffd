"""Command line host for the lettrage engine."""
