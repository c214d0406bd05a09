"""
Configuration - environment settings and scoring parameters
"""
