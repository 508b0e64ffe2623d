"""Request identity for audit attribution.

Authentication itself happens upstream: the reverse proxy in front of the
application validates the user and forwards ``X-User-Id`` / ``X-User-Name``.
Flask-Login turns those headers into ``current_user`` for every request.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from flask import has_request_context, jsonify, request
from flask_login import UserMixin, current_user

from .extensions import login_manager

logger = logging.getLogger(__name__)

SYSTEM_USER_NAME = "System"
USER_ID_HEADER = "X-User-Id"
USER_NAME_HEADER = "X-User-Name"


@dataclass
class CurrentUser(UserMixin):
    id: Optional[str]
    name: str

    def get_id(self):
        return self.id or self.name


SYSTEM_USER = CurrentUser(id=None, name=SYSTEM_USER_NAME)


class CurrentUserService:
    """Resolve the user that audit entries and notes are attributed to."""

    def get_current_user(self) -> CurrentUser:
        if not has_request_context():
            return SYSTEM_USER
        user = current_user._get_current_object()
        if user is None or not getattr(user, "is_authenticated", False):
            return SYSTEM_USER
        name = getattr(user, "name", None) or SYSTEM_USER_NAME
        return CurrentUser(id=user.get_id(), name=name)


def configure_login_manager(app):
    """Attach the header-based request loader and a JSON 401 handler."""
    login_manager.init_app(app)

    @login_manager.request_loader
    def load_user_from_request(req):
        name = (req.headers.get(USER_NAME_HEADER) or "").strip()
        if not name:
            return None
        user_id = (req.headers.get(USER_ID_HEADER) or "").strip() or None
        return CurrentUser(id=user_id, name=name[:100])

    @login_manager.unauthorized_handler
    def _unauthorized():
        logger.info("Rejected unauthenticated request to %s", request.path)
        return jsonify({"success": False, "message": "Authentication required", "errors": {}}), 401
