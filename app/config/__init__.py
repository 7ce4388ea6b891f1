# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, ASGI/WSGI applications and the Celery app.
#
# The Celery app is imported here so payments.tasks is registered whenever
# Django starts (web process, worker or beat).
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
