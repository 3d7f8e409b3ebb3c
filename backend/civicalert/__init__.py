"""CivicAlert staff backend: session and authentication service."""
