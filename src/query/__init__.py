"""Query validation and evaluation.

This module parses declarative query documents into typed trees
and evaluates them against datasets held by the store layer.
"""
