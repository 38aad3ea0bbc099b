"""Command line interface for helm_connect."""
