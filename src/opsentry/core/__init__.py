"""Core error classification, resilience, metrics and tracing for opsentry."""
