"""Grid model, document adapter, traversal and shape utilities."""
