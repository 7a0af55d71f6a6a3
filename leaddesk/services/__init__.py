"""Entity services: leads, messages, products."""
