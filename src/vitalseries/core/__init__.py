"""Core domain: models, ports and the aggregation pipeline."""
