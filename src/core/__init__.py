# src/core/__init__.py
"""
Доменный слой (Core Domain).
Бизнес-логика проверки водителей, независимая от HTTP.
"""
