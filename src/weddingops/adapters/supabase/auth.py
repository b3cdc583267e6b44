from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from supabase import AuthError as SupabaseAuthError

from weddingops.config import AuthConfig
from weddingops.domain import rules


class AuthError(RuntimeError):
    pass


@dataclass(frozen=True)
class StoredSession:
    access_token: str
    refresh_token: str
    email: str | None


def load_session(path: Path) -> StoredSession | None:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return None
    access_token = data.get("access_token")
    refresh_token = data.get("refresh_token")
    if not access_token or not refresh_token:
        return None
    return StoredSession(
        access_token=str(access_token),
        refresh_token=str(refresh_token),
        email=data.get("email"),
    )


def save_session(path: Path, session: Any) -> None:
    user = getattr(session, "user", None)
    payload = {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "email": getattr(user, "email", None),
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def clear_session(path: Path) -> None:
    path.unlink(missing_ok=True)


class AuthAdapter:
    """Email-link sign-in on top of the backend's auth API.

    The session is either present or absent. The SDK refreshes tokens; every
    change it reports is mirrored into the workspace session file so the next
    invocation can restore it.
    """

    def __init__(
        self,
        auth_api: Any,
        config: AuthConfig,
        session_path: Path,
        environment: str,
    ) -> None:
        self.auth_api = auth_api
        self.config = config
        self.session_path = session_path
        self.environment = environment
        self._subscription = None

    def watch_session(self) -> None:
        if self._subscription is None:
            self._subscription = self.auth_api.on_auth_state_change(self._on_change)

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def redirect_to(self) -> str:
        return self.config.redirect_for(self.environment)

    async def request_link(self, email: str) -> str:
        rules.require(email, "email")
        redirect = self.redirect_to
        try:
            await self.auth_api.sign_in_with_otp(
                {"email": email.strip(), "options": {"email_redirect_to": redirect}}
            )
        except SupabaseAuthError as exc:
            raise AuthError(f"Could not send the sign-in link: {exc.message}") from exc
        return redirect

    async def verify(self, email: str, code: str):
        rules.require(email, "email")
        rules.require(code, "code")
        try:
            response = await self.auth_api.verify_otp(
                {"email": email.strip(), "token": code.strip(), "type": "email"}
            )
        except SupabaseAuthError as exc:
            raise AuthError(f"Sign-in failed: {exc.message}") from exc
        if response.session is None:
            raise AuthError("Sign-in failed: no session returned.")
        save_session(self.session_path, response.session)
        return response.session

    async def restore(self):
        stored = load_session(self.session_path)
        if stored is None:
            return None
        try:
            response = await self.auth_api.set_session(stored.access_token, stored.refresh_token)
        except SupabaseAuthError as exc:
            clear_session(self.session_path)
            raise AuthError("Stored session is no longer valid; sign in again.") from exc
        return response.session

    async def session(self):
        return await self.auth_api.get_session()

    async def sign_out(self) -> None:
        try:
            await self.auth_api.sign_out()
        except SupabaseAuthError as exc:
            raise AuthError(f"Sign-out failed: {exc.message}") from exc
        finally:
            clear_session(self.session_path)

    def _on_change(self, event: str, session: Any) -> None:
        if session is None:
            clear_session(self.session_path)
        else:
            save_session(self.session_path, session)
