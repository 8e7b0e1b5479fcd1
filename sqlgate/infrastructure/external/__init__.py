"""Adapters for systems outside the policy store (target databases)."""
