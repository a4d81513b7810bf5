# statussync/errors.py
from typing import Optional


# Slack error codes that mean the token itself cannot do what we asked.
AUTH_ERROR_CODES = frozenset({
    "not_authed",
    "invalid_auth",
    "account_inactive",
    "token_revoked",
    "token_expired",
    "no_permission",
    "missing_scope",
    "not_allowed_token_type",
    "ekm_access_denied",
    "http_401",
    "http_403",
})


class StatusSyncError(Exception):
    pass


class ConfigError(StatusSyncError):
    pass


class PlayerError(StatusSyncError):
    pass


class SlackApiError(StatusSyncError):
    def __init__(self, code: str, detail: Optional[str] = None):
        self.code = code or "unknown_error"
        self.detail = detail
        message = self.code if not detail else f"{self.code}: {detail}"
        super().__init__(message)

    @property
    def is_auth_error(self) -> bool:
        return self.code in AUTH_ERROR_CODES
