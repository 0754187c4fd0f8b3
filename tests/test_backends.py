from __future__ import annotations
import asyncio

import pytest

from autojoin.services import bootstrap as boot
from autojoin.services.backend_memory import MemoryBackend
from autojoin.services.backends import get_backend
from autojoin.services.cluster_context import ClusterContext, use_ctx
from autojoin.services.consul.backend import ConsulBackend


def test_factory_selects_consul(make_settings, registry):
    backend = get_backend(make_settings(), registry)
    assert isinstance(backend, ConsulBackend)
    assert backend.registry is registry


def test_factory_builds_default_http_client(make_settings):
    backend = get_backend(make_settings(consul_host="c1"))
    assert backend.registry.host == "c1"


def test_factory_rejects_unknown(make_settings):
    with pytest.raises(ValueError):
        get_backend(make_settings(backend="etcd"))


def test_memory_backend_membership(event_loop, make_settings):
    members: set[str] = set()
    a = MemoryBackend(make_settings(node_name="autojoin@b"), members)
    b = MemoryBackend(make_settings(node_name="autojoin@a"), members)

    async def scenario():
        await a.register()
        await b.register()
        await a.register()
        assert await a.discover() == ["autojoin@a", "autojoin@b"]
        await a.deregister()
        assert await b.discover() == ["autojoin@a"]

    event_loop.run_until_complete(scenario())


def _boot(event_loop, ctx):
    svc = boot.BootstrapService(ctx)

    async def scenario():
        await svc.run_boot_sequence()
        await svc.run_boot_sequence()
        started = svc.health
        running = started is not None and started.running
        await svc.shutdown()
        return started, running

    return svc, event_loop.run_until_complete(scenario())


def test_boot_starts_health_loop_with_ttl(event_loop, make_settings, registry):
    settings = make_settings(consul_svc_ttl=30)
    svc, (health, running) = _boot(event_loop, ClusterContext(settings=settings, backend=ConsulBackend(settings, registry)))
    assert health is not None and running
    assert health.interval == 15
    assert svc.health is None


def test_boot_without_ttl_has_no_loop(event_loop, make_settings, registry):
    settings = make_settings(consul_svc_ttl=None)
    _, (health, _) = _boot(event_loop, ClusterContext(settings=settings, backend=ConsulBackend(settings, registry)))
    assert health is None


def test_boot_memory_backend_has_no_loop(event_loop, make_settings):
    settings = make_settings(backend="memory")
    _, (health, _) = _boot(event_loop, ClusterContext(settings=settings, backend=MemoryBackend(settings)))
    assert health is None


def test_module_facade(event_loop, make_settings):
    settings = make_settings(backend="memory")
    with use_ctx(ClusterContext(settings=settings, backend=MemoryBackend(settings))):

        async def scenario():
            await boot.run_boot_sequence()
            assert boot.is_ready()
            await boot.shutdown()

        event_loop.run_until_complete(scenario())


def test_module_facade_follows_new_context(event_loop, make_settings, monkeypatch):
    monkeypatch.setattr(boot, "_SERVICE", None)

    def memory_ctx(node: str) -> ClusterContext:
        settings = make_settings(backend="memory", node_name=node)
        return ClusterContext(settings=settings, backend=MemoryBackend(settings))

    first, second, third = memory_ctx("autojoin@a"), memory_ctx("autojoin@b"), memory_ctx("autojoin@c")
    with use_ctx(first):
        assert boot._svc().ctx is first
    with use_ctx(second):
        assert boot._svc().ctx is second

        async def scenario():
            await boot.run_boot_sequence()
            with use_ctx(third):
                # загруженный сервис не меняет контекст до shutdown
                assert boot._svc().ctx is second
                assert boot.is_ready()
                await boot.shutdown()
                assert boot._svc().ctx is third

        event_loop.run_until_complete(scenario())


def test_context_close_releases_registry(make_settings, registry):
    settings = make_settings()
    ctx = ClusterContext(settings=settings, backend=ConsulBackend(settings, registry), registry=registry)
    assert ctx.node_name == "autojoin@node1"
    ctx.close()
    assert registry.closed


def test_context_close_without_registry(make_settings):
    settings = make_settings(backend="memory")
    ClusterContext(settings=settings, backend=MemoryBackend(settings)).close()
