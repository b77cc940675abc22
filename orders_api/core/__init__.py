"""
Core package for shared utilities.

Configuration, structured logging and the domain exception hierarchy used
across the application.
"""
