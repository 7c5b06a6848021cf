# core/apps.py

"""
CORE APP CONFIG

Shared workflow primitives:
- Money helpers (integer minor units)
- Domain error taxonomy
- Append-only status history
- Version-guarded updates
- API response envelope
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Workflow Core"
