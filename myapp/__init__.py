"""my-app: health, readiness, info and echo HTTP service."""
