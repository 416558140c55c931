from __future__ import annotations

import pytest

from conftest import node_record
from mnhost.adapters.db import SqliteNodeStore
from mnhost.services.errors import NodeIdConflictError, NodeNotFoundError


@pytest.fixture
def store(tmp_path):
    return SqliteNodeStore(tmp_path / "mnhost.sqlite")


@pytest.mark.anyio
async def test_node_crud_is_owner_scoped(store):
    await store.init()
    alice = await store.create_user("alice", "hash-a")
    bob = await store.create_user("bob", "hash-b")

    await store.add_node(alice.id, node_record("mn1"))

    assert [n.id for n in await store.list_nodes(alice.id)] == ["mn1"]
    assert await store.list_nodes(bob.id) == []
    assert await store.node_exists(alice.id, "mn1")
    assert not await store.node_exists(bob.id, "mn1")
    assert await store.node_id_in_use("mn1")
    with pytest.raises(NodeNotFoundError):
        await store.get_node(bob.id, "mn1")

    node = await store.get_node(alice.id, "mn1")
    assert node.owner_id == alice.id
    assert node.rpc_password == "secret"
    assert node.daemon_path is None

    await store.remove_node(alice.id, "mn1")
    assert await store.list_all_nodes() == []
    await store.close()


@pytest.mark.anyio
async def test_node_id_is_unique_across_owners(store):
    alice = await store.create_user("alice", "h")
    bob = await store.create_user("bob", "h")
    await store.add_node(alice.id, node_record("mn1"))

    with pytest.raises(NodeIdConflictError):
        await store.add_node(bob.id, node_record("mn1", rpc_port=51475))


@pytest.mark.anyio
async def test_update_node_fields(store):
    alice = await store.create_user("alice", "h")
    await store.add_node(alice.id, node_record("mn1"))

    await store.update_node(alice.id, "mn1", daemon_path="/opt/pivxd", core_version="5.6.2")
    node = await store.get_node(alice.id, "mn1")
    assert (node.daemon_path, node.core_version) == ("/opt/pivxd", "5.6.2")

    await store.update_node(alice.id, "mn1", daemon_path=None)
    assert (await store.get_node(alice.id, "mn1")).daemon_path is None

    with pytest.raises(ValueError):
        await store.update_node(alice.id, "mn1", owner_id=99)
    with pytest.raises(ValueError):
        await store.update_node(alice.id, "mn1", node_id="mn2")
    with pytest.raises(NodeNotFoundError):
        await store.update_node(alice.id, "ghost", core_version="1.0")


@pytest.mark.anyio
async def test_ports_in_use_spans_all_owners(store):
    alice = await store.create_user("alice", "h")
    bob = await store.create_user("bob", "h")
    await store.add_node(alice.id, node_record("a", rpc_port=51473))
    await store.add_node(bob.id, node_record("b", chain="dogecash", rpc_port=22555))

    assert await store.ports_in_use() == {51472, 51473, 22554, 22555}
    assert await store.ports_in_use([51473, 9999]) == {51473}


@pytest.mark.anyio
async def test_list_nodes_for_chain(store):
    alice = await store.create_user("alice", "h")
    bob = await store.create_user("bob", "h")
    await store.add_node(alice.id, node_record("a"))
    await store.add_node(bob.id, node_record("b", rpc_port=51475))
    await store.add_node(bob.id, node_record("c", chain="zenzo", rpc_port=26211))

    assert [n.id for n in await store.list_nodes_for_chain("pivx")] == ["a", "b"]


@pytest.mark.anyio
async def test_users_and_sessions(store):
    user = await store.create_user("alice", "hash")
    assert (await store.get_user_by_username("alice")).id == user.id
    assert (await store.get_user_by_id(user.id)).username == "alice"
    assert await store.get_user_by_username("nobody") is None

    await store.create_session("tok", user.id, 60)
    session = await store.get_session("tok")
    assert session["user_id"] == user.id
    assert session["expires_at"] >= session["created_at"] + 60

    await store.delete_session("tok")
    assert await store.get_session("tok") is None
