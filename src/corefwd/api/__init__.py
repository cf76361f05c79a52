"""REST API for the forward-rule manager."""
