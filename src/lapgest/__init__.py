"""Client-side data synchronization and auth-gated routing for LAPGEST-PRO."""

__version__ = "0.1.0"
