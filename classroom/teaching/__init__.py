"""Site content models, shared site state and the teaching services."""
