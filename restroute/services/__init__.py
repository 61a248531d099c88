"""Services used across restroute."""
