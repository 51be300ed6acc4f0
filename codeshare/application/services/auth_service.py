from __future__ import annotations

import logging
import secrets
import uuid
from datetime import timedelta
from typing import List, Optional

from ...domain.clock import to_epoch_ms, to_iso
from ...domain.errors import (
    AuthError,
    CodeShareError,
    ConflictError,
    NotFoundError,
    OperationResult,
    ValidationError,
)
from ...domain.models import RateLimitDecision, ResetToken, ResetTokenCheck, Session, User
from ...domain.validators import is_valid_email, password_policy_violations, validate_session_record
from ...infrastructure.persistence.database import DatabaseManager
from ...infrastructure.persistence.event_log import EventLog
from ...services.email_service import EmailService
from ...services.password_hasher import PasswordHasher
from .operation import run_operation
from .rate_limiter import LoginRateLimiter

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
TOKEN_REQUIRED = "Reset token is required"
TOKEN_UNKNOWN = "Invalid or expired reset token"
TOKEN_USED = "Reset token has already been used"
TOKEN_EXPIRED = "Reset token has expired"


class AuthService:
    """Registration, sessions, password changes and password reset tokens."""

    def __init__(
        self,
        database: DatabaseManager,
        hasher: PasswordHasher,
        events: EventLog,
        rate_limiter: LoginRateLimiter,
        email_service: Optional[EmailService] = None,
        session_ttl: timedelta = timedelta(hours=24),
        reset_token_ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self._db = database
        self._hasher = hasher
        self._events = events
        self._rate_limiter = rate_limiter
        self._email = email_service
        self._session_ttl = session_ttl
        self._reset_token_ttl = reset_token_ttl

    def _now_ms(self) -> int:
        return to_epoch_ms(self._db.clock())

    def _session_expiry(self) -> int:
        return to_epoch_ms(self._db.clock() + self._session_ttl)

    # Registration and login ---------------------------------------------------
    def register(self, name: str, email: str, password: str) -> OperationResult:
        return run_operation(self._events, "register", lambda: self._register(name, email, password))

    def _register(self, name: str, email: str, password: str) -> User:
        name_clean = (name or "").strip()
        email_clean = (email or "").strip().lower()
        errors: List[str] = []
        if not name_clean:
            errors.append("Name is required")
        if not email_clean:
            errors.append("Email is required")
        elif not is_valid_email(email_clean):
            errors.append("Invalid email format")
        errors.extend(password_policy_violations(password))
        if errors:
            raise ValidationError(errors)
        if self._db.find_user_by_email(email_clean):
            raise ConflictError("User with this email already exists")

        now = to_iso(self._db.clock())
        user = User(
            id=uuid.uuid4().hex,
            name=name_clean,
            email=email_clean,
            password_hash=self._hasher.hash(password),
            created_at=now,
            updated_at=now,
        )
        if not self._db.save_user(user):
            if self._db.find_user_by_email(email_clean):
                raise ConflictError("User with this email already exists")
            raise CodeShareError("Failed to create user account")
        logger.info("User registered: %s", user.email)
        return user

    def login(self, email: str, password: str) -> OperationResult:
        return run_operation(self._events, "login", lambda: self._login(email, password))

    def _login(self, email: str, password: str) -> Session:
        email_clean = (email or "").strip().lower()
        if not email_clean:
            raise ValidationError("Email is required")
        if not password:
            raise ValidationError("Password is required")
        user = self._db.find_user_by_email(email_clean)
        if user is None or not self._hasher.verify(password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)

        session = Session(
            token=secrets.token_urlsafe(32),
            user=user.public_view(),
            expires_at=self._session_expiry(),
        )
        self._db.put_session(session)
        logger.info("User logged in: %s", user.email)
        return session

    def check_rate_limit(self, identifier: str) -> RateLimitDecision:
        decision = self._rate_limiter.check(identifier)
        if not decision.allowed:
            logger.warning("Rate limit reached for %s", identifier)
        return decision

    def purge_login_attempts(self) -> int:
        return self._rate_limiter.purge_expired()

    # Sessions -----------------------------------------------------------------
    def get_session(self, token: Optional[str]) -> Optional[Session]:
        """Live session for ``token``; expired or corrupted entries are removed."""
        if not token:
            return None
        record = self._db.get_session_record(token)
        if record is None:
            return None
        if not validate_session_record(record) or record["token"] != token:
            logger.warning("Corrupted session entry, clearing it")
            self._db.remove_session(token)
            return None
        session = Session.from_record(record)
        if session.is_expired(self._now_ms()):
            logger.info("Session expired for user %s", session.user_id)
            self._db.remove_session(token)
            return None
        return session

    def get_current_user(self, token: Optional[str]) -> Optional[User]:
        session = self.get_session(token)
        if session is None:
            return None
        return self._db.get_user(session.user_id)

    def refresh_session(self, token: Optional[str]) -> bool:
        session = self.get_session(token)
        if session is None:
            return False
        session.expires_at = self._session_expiry()
        self._db.put_session(session)
        return True

    def logout(self, token: Optional[str]) -> None:
        if token and self._db.remove_session(token):
            logger.info("User logged out")

    def purge_expired_sessions(self) -> int:
        now_ms = self._now_ms()
        expired = [session.token for session in self._db.list_sessions() if session.is_expired(now_ms)]
        removed = self._db.remove_sessions(expired)
        if removed:
            logger.info("Removed %d expired sessions", removed)
        return removed

    # Profile and password -----------------------------------------------------
    def update_profile(self, user_id: str, name: Optional[str] = None) -> OperationResult:
        return run_operation(self._events, "update_profile", lambda: self._update_profile(user_id, name), user_id)

    def _update_profile(self, user_id: str, name: Optional[str]) -> User:
        if not user_id:
            raise ValidationError("User ID is required")
        changes = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Name cannot be empty")
            changes["name"] = name.strip()
        if self._db.get_user(user_id) is None:
            raise NotFoundError("User not found")
        if not self._db.update_user(user_id, changes):
            raise CodeShareError("Failed to update user profile")
        updated = self._db.get_user(user_id)
        if updated is None:
            raise NotFoundError("User not found after update")

        now_ms = self._now_ms()
        for session in self._db.list_sessions():
            if session.user_id == user_id and not session.is_expired(now_ms):
                session.user = updated.public_view()
                session.expires_at = self._session_expiry()
                self._db.put_session(session)
        logger.info("User profile updated: %s", user_id)
        return updated

    def change_password(self, user_id: str, current_password: str, new_password: str) -> OperationResult:
        return run_operation(
            self._events,
            "change_password",
            lambda: self._change_password(user_id, current_password, new_password),
            user_id,
        )

    def _change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        if not user_id or not current_password or not new_password:
            raise ValidationError("All fields are required")
        user = self._db.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if not self._hasher.verify(current_password, user.password_hash):
            raise AuthError("Current password is incorrect")
        violations = password_policy_violations(new_password)
        if violations:
            raise ValidationError(violations)
        if not self._db.update_user(user_id, {"password_hash": self._hasher.hash(new_password)}):
            raise CodeShareError("Failed to update password")
        logger.info("Password changed for user %s", user_id)

    # Password reset -----------------------------------------------------------
    def request_password_reset(self, email: str) -> OperationResult:
        """Always succeeds for a well-formed address; a token exists only for real accounts."""
        return run_operation(self._events, "request_password_reset", lambda: self._request_password_reset(email))

    def _request_password_reset(self, email: str) -> Optional[str]:
        email_clean = (email or "").strip().lower()
        if not email_clean:
            raise ValidationError("Email is required")
        if not is_valid_email(email_clean):
            raise ValidationError("Invalid email format")
        user = self._db.find_user_by_email(email_clean)
        if user is None:
            logger.info("Password reset attempted for unknown email")
            return None

        issued = ResetToken(
            email=user.email,
            token=f"reset_{secrets.token_urlsafe(32)}",
            expires_at=to_epoch_ms(self._db.clock() + self._reset_token_ttl),
        )
        self._db.update_reset_tokens(
            lambda tokens: [token for token in tokens if token.email != user.email] + [issued]
        )
        self._events.log_info("Password reset requested", {"email": user.email}, user.id)
        if self._email is not None:
            self._email.send_password_reset_email(user.email, issued.token)
        return issued.token

    def validate_reset_token(self, token: Optional[str]) -> ResetTokenCheck:
        if not token:
            return ResetTokenCheck(valid=False, error=TOKEN_REQUIRED)
        match = next((item for item in self._db.get_reset_tokens() if item.token == token), None)
        if match is None:
            return ResetTokenCheck(valid=False, error=TOKEN_UNKNOWN)
        if match.used:
            return ResetTokenCheck(valid=False, error=TOKEN_USED)
        if self._now_ms() > match.expires_at:
            return ResetTokenCheck(valid=False, error=TOKEN_EXPIRED)
        return ResetTokenCheck(valid=True, email=match.email)

    def reset_password_with_token(self, token: str, new_password: str) -> OperationResult:
        return run_operation(
            self._events,
            "reset_password_with_token",
            lambda: self._reset_password_with_token(token, new_password),
        )

    def _reset_password_with_token(self, token: str, new_password: str) -> None:
        check = self.validate_reset_token(token)
        if not check.valid:
            if check.error == TOKEN_UNKNOWN:
                raise NotFoundError(TOKEN_UNKNOWN)
            raise ValidationError(check.error or TOKEN_UNKNOWN)
        violations = password_policy_violations(new_password)
        if violations:
            raise ValidationError(violations)
        user = self._db.find_user_by_email(check.email or "")
        if user is None:
            raise NotFoundError("User not found")

        self._mark_token(token, used=True, claim=True)
        try:
            if not self._db.update_user(user.id, {"password_hash": self._hasher.hash(new_password)}):
                raise CodeShareError("Failed to update password")
        except CodeShareError:
            self._mark_token(token, used=False)
            raise
        self._events.log_info("Password reset completed", {"email": user.email}, user.id)
        logger.info("Password reset for user %s", user.id)

    def _mark_token(self, token: str, used: bool, claim: bool = False) -> None:
        now_ms = self._now_ms()

        def mark(tokens: List[ResetToken]) -> List[ResetToken]:
            for item in tokens:
                if item.token != token:
                    continue
                if claim and item.used:
                    raise ValidationError(TOKEN_USED)
                if claim and now_ms > item.expires_at:
                    raise ValidationError(TOKEN_EXPIRED)
                item.used = used
                return tokens
            raise NotFoundError(TOKEN_UNKNOWN)

        self._db.update_reset_tokens(mark)

    def cleanup_expired_tokens(self) -> int:
        now_ms = self._now_ms()
        removed: List[int] = []

        def prune(tokens: List[ResetToken]) -> List[ResetToken]:
            kept = [token for token in tokens if now_ms < token.expires_at and not token.used]
            removed.append(len(tokens) - len(kept))
            return kept

        self._db.update_reset_tokens(prune)
        logger.info("Cleaned up %d expired reset tokens", removed[0])
        return removed[0]
