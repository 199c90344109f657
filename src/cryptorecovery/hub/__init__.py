"""Host layer: position book, lookup coordination and the CLI."""
