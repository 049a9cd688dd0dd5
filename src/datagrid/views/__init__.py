"""Qt adapters over the view models."""
