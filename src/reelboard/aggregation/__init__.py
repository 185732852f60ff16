"""Aggregation module for export payloads.

Reads the DB and assembles the render sequence. Never mutates rows and
never calls providers.
"""
