"""Storage and registry layer.

This module persists dataset snapshots and keeps the dataset index.
It powers dataset add, remove, list, and query for the SDK.
"""
