"""Shared fixtures for repomind-core tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from repomind_core.gateway import GatewayResponse, RequestGateway
from repomind_store.identity import IdentityStore
from repomind_store.memory import MemoryStore
from repomind_store.models import RepositoryContext


@pytest.fixture
def gateway():
    """A gateway double: every call succeeds with an empty 200 unless a test says otherwise."""
    gw = MagicMock(spec=RequestGateway)
    gw.get.return_value = GatewayResponse(200, None)
    gw.post.return_value = GatewayResponse(200, None)
    gw.send.return_value = GatewayResponse(200, None)
    return gw


@pytest.fixture
def repository():
    return RepositoryContext(repository_id=42, repository_name="acme/api")


@pytest.fixture
def identity(repository):
    store = IdentityStore(durable=MemoryStore(), session=MemoryStore())
    store.set_repository_context(repository)
    return store


@pytest.fixture
def empty_identity():
    return IdentityStore(durable=MemoryStore(), session=MemoryStore())
