"""Service layer: feed ingestion, ranking, notifications and advisory."""
