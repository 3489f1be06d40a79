"""
Recipe video backend.

This package provides a FastAPI application that stores uploaded cooking
videos in object storage and keeps recipe and step records in a relational
database.
"""
