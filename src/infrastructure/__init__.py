"""Infrastructure Layer.

Adapters that perform I/O and hand domain-ready values to the domain layer.
"""
