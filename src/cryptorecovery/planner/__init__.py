"""Pure planning functions: ladder projection and re-buy execution."""
