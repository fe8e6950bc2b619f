"""Credential store models and async session management."""
