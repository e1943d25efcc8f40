"""REST API for guestpass invitation access."""
