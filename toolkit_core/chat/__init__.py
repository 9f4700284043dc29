"""Chat side of the core: transport interface, payloads, fan-out and connection management."""
