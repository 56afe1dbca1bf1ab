# src/services/__init__.py
"""
HTTP сервисы приложения.

Сервисы:
- background_check: проверка биографии водителя и повышение роли (только для админов)
"""

__all__: list[str] = []
