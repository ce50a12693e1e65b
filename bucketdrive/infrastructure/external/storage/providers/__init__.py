"""Built-in storage provider implementations."""
