"""Storage and versioning layer.

This package persists catalog resources with current and versioned locations.
It powers resource lookup, freezing, and version resolution for the SDK.
"""
