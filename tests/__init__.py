"""HubLink test suite."""
