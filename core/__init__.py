"""
Core - score service orchestrating engine, cache and store
"""
