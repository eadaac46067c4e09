"""Subcommand parsers for the picforge CLI."""
