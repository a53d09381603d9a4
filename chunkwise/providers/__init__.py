"""Adapters implementing the interfaces in :mod:`chunkwise.interfaces`."""
