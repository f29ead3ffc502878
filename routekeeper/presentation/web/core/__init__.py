"""Core web components: request and response models."""
