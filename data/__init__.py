"""
Data layer - upstream collectors and durable/cached storage
"""
