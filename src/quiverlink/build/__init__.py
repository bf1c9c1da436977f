"""Reference pipeline: fingerprints, cache, splicing, and the document runner."""
