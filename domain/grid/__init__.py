"""Grid Bounded Context.

Responsible for the geohash grid and its coordinate arithmetic:
- Value Objects: GeoPoint, BoundingBox
- Codec: string and integer geohash encode/decode/neighbor
"""
