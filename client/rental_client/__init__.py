"""
Client core for the bike and gear rental marketplace.

It exposes subpackages for core utilities (configuration, logging, the
authenticated HTTP gateway, the live socket channel), pydantic schemas,
REST-backed repositories and the service layer.
"""
