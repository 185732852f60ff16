"""API module for Reelboard.

- Validates inputs, reads/writes DB
- Returns payloads for the editor client
- Provider calls go through the generation layer, never directly
"""
