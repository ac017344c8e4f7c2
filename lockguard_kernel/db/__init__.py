"""Database plumbing: declarative base, engine/session management, listeners."""
