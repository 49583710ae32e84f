"""Core layer: provider-agnostic content model and pure transformations."""
