"""Command line commands for gitconnector."""
