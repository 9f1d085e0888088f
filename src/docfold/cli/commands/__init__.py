"""Top-level docfold commands (one module per command)."""
