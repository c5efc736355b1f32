"""GymLog systems: durable storage and portable backups."""
