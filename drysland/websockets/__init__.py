"""Socket.IO handlers and payload validation."""
