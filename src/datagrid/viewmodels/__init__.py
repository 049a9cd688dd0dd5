"""ViewModels (Qt-free presentation state)."""
