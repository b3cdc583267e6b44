"""Startup and shutdown of the collaborators a command works with."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from weddingops.adapters.supabase.auth import AuthAdapter, AuthError
from weddingops.adapters.supabase.client import RemoteClient
from weddingops.config import BackendConfig, WorkspaceConfig, deployment_environment
from weddingops.services.eventlog import EventLogger
from weddingops.store.demo import demo_snapshot
from weddingops.store.local import load_snapshot, save_snapshot
from weddingops.store.snapshot import Store

Connector = Callable[[str, str], Awaitable[RemoteClient]]


@dataclass
class Runtime:
    workspace: WorkspaceConfig
    store: Store
    logger: EventLogger
    remote: RemoteClient | None = None
    auth: AuthAdapter | None = None

    @property
    def demo(self) -> bool:
        return self.remote is None

    def require_auth(self) -> AuthAdapter:
        if self.auth is None:
            raise AuthError(
                "No backend configured. Set SUPABASE_URL and SUPABASE_ANON_KEY to sign in."
            )
        return self.auth

    def save_cache(self) -> None:
        save_snapshot(self.workspace.cache.snapshot_path, self.store.snapshot)


@asynccontextmanager
async def open_runtime(
    workspace: WorkspaceConfig,
    backend: BackendConfig | None,
    logger: EventLogger,
    *,
    offline: bool = False,
    load: bool = True,
    connect: Connector = RemoteClient.connect,
    environment: str | None = None,
) -> AsyncIterator[Runtime]:
    """Yield a ready Runtime and release it afterwards.

    Without backend credentials (or with `offline`) the store starts from the
    workspace cache, or from the demo data when there is no cache yet. With a
    backend, the stored session is restored and, when `load` is set, all
    collections are fetched; `load=False` is for commands that only talk to
    the auth API. The cache is rewritten on the way out.
    """
    if backend is None or offline:
        initial = load_snapshot(workspace.cache.snapshot_path) or demo_snapshot()
        store = Store(None, initial=initial, on_failure=workspace.on_failure, logger=logger)
        runtime = Runtime(workspace=workspace, store=store, logger=logger)
        try:
            yield runtime
        finally:
            runtime.save_cache()
        return

    remote = await connect(backend.url, backend.anon_key)
    auth = AuthAdapter(
        remote.auth,
        workspace.auth,
        workspace.session_path,
        environment or deployment_environment(),
    )
    store = Store(remote, on_failure=workspace.on_failure, logger=logger)
    runtime = Runtime(workspace=workspace, store=store, logger=logger, remote=remote, auth=auth)
    loaded = False
    try:
        auth.watch_session()
        session = await auth.restore()
        if load:
            if session is None:
                raise AuthError("Not signed in. Run `weddingops auth login <email>` first.")
            await store.load()
            loaded = True
        yield runtime
    finally:
        if loaded:
            runtime.save_cache()
        auth.close()
        await remote.close()
