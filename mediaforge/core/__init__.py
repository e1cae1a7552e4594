"""Core building blocks: configuration store, positioning and the pipeline."""
