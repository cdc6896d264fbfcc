"""Nexus auth guard: abuse prevention and credential integrity for the auth API."""
