"""SQLAlchemy-backed order and warehouse repositories."""
