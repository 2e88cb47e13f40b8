"""Secret Santa gift exchange API."""
