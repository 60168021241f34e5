"""API routes for the lab portal."""
