"""Robot entities, trajectory ledgers, and the shared error taxonomy."""
