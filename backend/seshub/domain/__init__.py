"""Domain layer: immutable value objects shared by services and schemas."""
