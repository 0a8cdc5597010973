"""Flask application layer.

Public API::

    from pushnotify.app import create_app
"""

from pushnotify.app.factory import create_app

__all__ = ["create_app"]
