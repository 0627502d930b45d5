"""HTTP routers for the token service."""
