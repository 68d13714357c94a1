"""Application layer: catalog building and wiring."""
