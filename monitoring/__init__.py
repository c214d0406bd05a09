"""
Monitoring - HTTP routes and logging
"""
