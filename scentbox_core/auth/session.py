# =============================================================================
# scentbox_core/auth/session.py
# Current-user context for remote operations and sync
# =============================================================================
"""
Authentication context.

Every remote user-status and review call needs the signed-in user's id.
``SupabaseAuthContext`` keeps the id and e-mail for five minutes so each
call does not trigger a new session fetch, and turns Supabase auth events
into sign-in / sign-out callbacks (the sync engine listens to those).
"""

from __future__ import annotations
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from supabase import Client

from scentbox_core.errors import UnauthenticatedError
from scentbox_core.logging import get_logger

logger = get_logger(__name__)

SESSION_CACHE_TTL = 300  # seconds

AuthCallback = Callable[[bool], None]


class AuthContext(ABC):
    """Who is signed in, plus sign-in / sign-out notifications."""

    def __init__(self):
        self._callbacks: List[AuthCallback] = []
        self._callback_lock = threading.Lock()

    @abstractmethod
    def current_user_id(self) -> str:
        """
        Raises:
            UnauthenticatedError: nobody is signed in
        """

    @abstractmethod
    def current_user_email(self) -> Optional[str]:
        ...

    @property
    def is_authenticated(self) -> bool:
        try:
            self.current_user_id()
            return True
        except UnauthenticatedError:
            return False

    def user_id_or_none(self) -> Optional[str]:
        try:
            return self.current_user_id()
        except UnauthenticatedError:
            return None

    def register_callback(self, callback: AuthCallback) -> None:
        """Register ``callback(signed_in)`` for auth transitions."""
        with self._callback_lock:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: AuthCallback) -> None:
        with self._callback_lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _notify(self, signed_in: bool) -> None:
        with self._callback_lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(signed_in)
            except Exception as e:
                logger.error(f"Auth callback error: {e}")


class StaticAuthContext(AuthContext):
    """Fixed user, for tests and the mock provider."""

    def __init__(self, user_id: Optional[str] = None, email: Optional[str] = None):
        super().__init__()
        self._user_id = user_id
        self._email = email

    def current_user_id(self) -> str:
        if self._user_id is None:
            raise UnauthenticatedError()
        return self._user_id

    def current_user_email(self) -> Optional[str]:
        return self._email if self._user_id is not None else None

    def sign_in(self, user_id: str, email: Optional[str] = None) -> None:
        self._user_id = user_id
        self._email = email
        logger.info(f"Signed in as {user_id}")
        self._notify(True)

    def sign_out(self) -> None:
        self._user_id = None
        self._email = None
        logger.info("Signed out")
        self._notify(False)


class SupabaseAuthContext(AuthContext):
    """
    Supabase auth with a short-lived cache of the session user.

    The cache is refreshed on sign-in and cleared on sign-out.
    """

    SIGNED_IN_EVENTS = ("SIGNED_IN", "TOKEN_REFRESHED", "USER_UPDATED", "INITIAL_SESSION")

    def __init__(
        self,
        client: Client,
        ttl: float = SESSION_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.client = client
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._user_id: Optional[str] = None
        self._email: Optional[str] = None
        self._fetched_at: Optional[float] = None
        self._subscription = None

    def _cache_valid(self) -> bool:
        return self._fetched_at is not None and (self._clock() - self._fetched_at) < self.ttl

    def refresh_session(self) -> Optional[str]:
        """Fetch the session and update the cache; returns the user id or None."""
        session = self.client.auth.get_session()
        with self._lock:
            if session is None or session.user is None:
                self._user_id, self._email, self._fetched_at = None, None, None
                return None
            self._user_id = str(session.user.id)
            self._email = session.user.email
            self._fetched_at = self._clock()
            return self._user_id

    def clear(self) -> None:
        with self._lock:
            self._user_id, self._email, self._fetched_at = None, None, None

    def current_user_id(self) -> str:
        with self._lock:
            if self._user_id is not None and self._cache_valid():
                return self._user_id
        user_id = self.refresh_session()
        if user_id is None:
            raise UnauthenticatedError()
        return user_id

    def current_user_email(self) -> Optional[str]:
        with self._lock:
            if self._user_id is not None and self._cache_valid():
                return self._email
        self.refresh_session()
        with self._lock:
            return self._email

    def listen(self) -> None:
        """Subscribe to Supabase auth state changes."""
        if self._subscription is None:
            self._subscription = self.client.auth.on_auth_state_change(self._on_auth_event)

    def stop_listening(self) -> None:
        if self._subscription is not None:
            try:
                self._subscription.unsubscribe()
            except Exception as e:
                logger.debug(f"Auth unsubscribe failed: {e}")
            self._subscription = None

    def _on_auth_event(self, event, session) -> None:
        name = getattr(event, "value", event)
        if name == "SIGNED_OUT":
            self.clear()
            logger.info("Auth state: signed out")
            self._notify(False)
        elif name in self.SIGNED_IN_EVENTS and session is not None and session.user is not None:
            was_signed_in = self._user_id is not None
            with self._lock:
                self._user_id = str(session.user.id)
                self._email = session.user.email
                self._fetched_at = self._clock()
            if not was_signed_in:
                logger.info("Auth state: signed in")
                self._notify(True)

    def sign_in(self, email: str, password: str) -> str:
        """Password sign-in; returns the user id."""
        response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        user = response.user
        if user is None:
            raise UnauthenticatedError("Sign-in failed. Check e-mail and password.")
        with self._lock:
            self._user_id = str(user.id)
            self._email = user.email
            self._fetched_at = self._clock()
        self._notify(True)
        return self._user_id

    def sign_out(self) -> None:
        self.client.auth.sign_out()
        self.clear()
        self._notify(False)
