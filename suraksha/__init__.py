"""suraksha proximity tracking and SOS dispatch service."""
