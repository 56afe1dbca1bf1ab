# src/services/background_check/__init__.py
"""
Background Check Service: HTTP API проверки биографии водителей.
"""
