"""Command modules for spherectl."""
