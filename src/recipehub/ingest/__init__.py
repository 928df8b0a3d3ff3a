"""Integrations with external recipe data sources."""
