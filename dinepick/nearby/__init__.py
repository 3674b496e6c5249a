"""
Nearby restaurant discovery.

Responsibilities:
- Resolve the user's current location with bounded timeouts.
- Query an external places provider for restaurants around it.
- Convert raw hits into nearby candidates and de-duplicate them.
- Cache scan results per coarse geo bucket for a short TTL.
"""
