"""Marketplace core: execution environment, stores, engine, event log."""
