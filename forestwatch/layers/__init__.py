"""Map layers: entity classification, hit-testing and selection."""
