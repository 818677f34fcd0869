"""Command line entrypoints for metagraph."""
