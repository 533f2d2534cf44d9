"""Request execution: mirror selection, backoff and the registry client."""
