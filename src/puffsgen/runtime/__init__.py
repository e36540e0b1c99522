"""C boilerplate copied into every generated artifact."""
