"""Periodic collectors that turn diagnostic sources into snapshots."""
