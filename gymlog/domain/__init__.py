"""GymLog domain layer: derived views and rotation scheduling."""
