"""Core domain: models, ports, ring store, coalescer and aggregator."""
