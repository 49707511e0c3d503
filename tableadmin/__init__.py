"""
Generic admin access to the tables of a SQLite, MySQL or PostgreSQL database.
"""

__version__ = "1.0.0"
