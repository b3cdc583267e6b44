from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

WORKSPACES_DIR = Path("workspaces")
CURRENT_WORKSPACE_FILE = WORKSPACES_DIR / ".current"
WORKSPACE_FILENAME = "workspace.yaml"
SESSION_FILENAME = ".session.json"
EVENTS_FILENAME = "events.ndjson"

SUPABASE_URL_ENV = "SUPABASE_URL"
SUPABASE_ANON_KEY_ENV = "SUPABASE_ANON_KEY"
ENVIRONMENT_ENV = "WEDDINGOPS_ENV"

DEFAULT_PRODUCTION_REDIRECT = "https://wedding-admin-gamma.vercel.app"
DEFAULT_LOCAL_REDIRECT = "http://localhost:5173"


class FailurePolicy(str, Enum):
    ROLLBACK = "rollback"
    MARK_PENDING = "mark_pending"


@dataclass(frozen=True)
class CacheConfig:
    snapshot_path: Path


@dataclass(frozen=True)
class AuthConfig:
    production_redirect: str
    local_redirect: str

    def redirect_for(self, environment: str | None) -> str:
        if (environment or "").strip().lower() == "production":
            return self.production_redirect
        return self.local_redirect


@dataclass(frozen=True)
class BackendConfig:
    url: str
    anon_key: str


@dataclass(frozen=True)
class WorkspaceConfig:
    name: str
    cache: CacheConfig
    auth: AuthConfig
    on_failure: FailurePolicy
    path: Path

    @property
    def session_path(self) -> Path:
        return self.path / SESSION_FILENAME

    @property
    def events_path(self) -> Path:
        return self.path / EVENTS_FILENAME


class WorkspaceError(RuntimeError):
    pass


def ensure_workspaces_dir() -> None:
    WORKSPACES_DIR.mkdir(parents=True, exist_ok=True)


def set_current_workspace(name: str) -> None:
    ensure_workspaces_dir()
    CURRENT_WORKSPACE_FILE.write_text(f"{name}\n", encoding="utf-8")


def get_current_workspace_name() -> str:
    if not CURRENT_WORKSPACE_FILE.exists():
        raise WorkspaceError("No active workspace. Run `weddingops workspace use <name>`.")
    return CURRENT_WORKSPACE_FILE.read_text(encoding="utf-8").strip()


def workspace_path(name: str) -> Path:
    return WORKSPACES_DIR / name


def workspace_config_path(name: str) -> Path:
    return workspace_path(name) / WORKSPACE_FILENAME


def load_workspace(name: str | None = None) -> WorkspaceConfig:
    if name is None:
        name = get_current_workspace_name()
    config_path = workspace_config_path(name)
    if not config_path.exists():
        raise WorkspaceError(f"Workspace config not found: {config_path}")
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise WorkspaceError(f"Workspace config must be a mapping: {config_path}")
    cache = _parse_cache(data.get("cache"), config_path)
    auth = _parse_auth(data.get("auth"))
    on_failure = _parse_sync(data.get("sync"))
    return WorkspaceConfig(
        name=name, cache=cache, auth=auth, on_failure=on_failure, path=config_path.parent
    )


def write_workspace_config(
    name: str,
    production_redirect: str | None = None,
    local_redirect: str | None = None,
) -> Path:
    ensure_workspaces_dir()
    ws_dir = workspace_path(name)
    ws_dir.mkdir(parents=True, exist_ok=True)
    config = {
        "workspace": name,
        "cache": {"snapshot_path": "./snapshot.json"},
        "auth": {
            "production_redirect": production_redirect or DEFAULT_PRODUCTION_REDIRECT,
            "local_redirect": local_redirect or DEFAULT_LOCAL_REDIRECT,
        },
        "sync": {"on_failure": FailurePolicy.ROLLBACK.value},
    }
    config_path = workspace_config_path(name)
    config_path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return config_path


def load_backend_config(env: Mapping[str, str] | None = None) -> BackendConfig | None:
    """Return the backend settings, or None when the app should run on demo data."""
    env = os.environ if env is None else env
    url = (env.get(SUPABASE_URL_ENV) or "").strip()
    anon_key = (env.get(SUPABASE_ANON_KEY_ENV) or "").strip()
    if not url or not anon_key:
        return None
    return BackendConfig(url=url, anon_key=anon_key)


def deployment_environment(env: Mapping[str, str] | None = None) -> str:
    env = os.environ if env is None else env
    return (env.get(ENVIRONMENT_ENV) or "development").strip().lower()


def _parse_cache(cache_data: Any, config_path: Path) -> CacheConfig:
    if cache_data is None:
        return CacheConfig(snapshot_path=(config_path.parent / "snapshot.json").resolve())
    if not isinstance(cache_data, dict):
        raise WorkspaceError("Invalid workspace cache configuration.")
    raw = cache_data.get("snapshot_path")
    if not raw:
        raise WorkspaceError("Workspace cache.snapshot_path is required.")
    snapshot_path = _resolve_path(raw, config_path)
    if snapshot_path is None:
        raise WorkspaceError("Workspace cache.snapshot_path must be a string.")
    return CacheConfig(snapshot_path=snapshot_path)


def _resolve_path(raw_value: Any, config_path: Path) -> Path | None:
    if not isinstance(raw_value, str):
        return None
    raw_path = Path(raw_value)
    if raw_path.is_absolute():
        return raw_path
    workspace_dir = config_path.parent
    if raw_path.parts and raw_path.parts[0] == WORKSPACES_DIR.name:
        # Paths written from the repo root, e.g. "workspaces/studio/snapshot.json".
        return (workspace_dir.parent.parent / raw_path).resolve()
    return (workspace_dir / raw_path).resolve()


def _parse_auth(auth_data: Any) -> AuthConfig:
    if auth_data is None:
        auth_data = {}
    if not isinstance(auth_data, dict):
        raise WorkspaceError("Invalid workspace auth configuration.")
    production = auth_data.get("production_redirect") or DEFAULT_PRODUCTION_REDIRECT
    local = auth_data.get("local_redirect") or DEFAULT_LOCAL_REDIRECT
    if not isinstance(production, str) or not isinstance(local, str):
        raise WorkspaceError("Workspace auth redirects must be strings.")
    return AuthConfig(production_redirect=production, local_redirect=local)


def _parse_sync(sync_data: Any) -> FailurePolicy:
    if sync_data is None:
        return FailurePolicy.ROLLBACK
    if not isinstance(sync_data, dict):
        raise WorkspaceError("Invalid workspace sync configuration.")
    raw = sync_data.get("on_failure") or FailurePolicy.ROLLBACK.value
    try:
        return FailurePolicy(raw)
    except ValueError as exc:
        allowed = ", ".join(policy.value for policy in FailurePolicy)
        raise WorkspaceError(f"Workspace sync.on_failure must be one of: {allowed}") from exc
