"""Release pipeline: preflight, tagging, build/upload fan-out, notification."""
