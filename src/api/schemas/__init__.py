"""Pydantic schemas for API requests and responses.

Settings schemas use camelCase field names on the wire, matching the
persisted records; error and calculator schemas use snake_case.
"""
