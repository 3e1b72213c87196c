"""Demo scenarios, the live-simulation tick and seed datasets."""
