"""Edge gateway for the session harness and completion providers."""
