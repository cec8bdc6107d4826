import pytest
from neo4j.exceptions import ClientError, CypherSyntaxError, ServiceUnavailable, SessionExpired

from docgraph.core.exceptions import ConnectionFailure, ConnectionTimeout, QueryFailure
from docgraph.core.neo4j_client import Neo4jClient, translate_error

from conftest import FakeSession, make_driver


def _client(session: FakeSession) -> Neo4jClient:
    return Neo4jClient(
        uri="neo4j://test",
        user="neo4j",
        password="secret",
        database="docs",
        driver=make_driver(session),
    )


@pytest.mark.asyncio
async def test_execute_read_uses_read_mode_and_normalizes():
    session = FakeSession(rows=[{"total": {"low": 3, "high": 0}}])
    client = _client(session)

    rows = await client.execute_read("MATCH (n:`Customer`) RETURN count(n) AS total")

    assert rows == [{"total": 3}]
    assert session.access == ["read"]
    client._driver.session.assert_called_once_with(database="docs")
    session.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_execute_write_uses_write_mode():
    session = FakeSession(rows=[{"deleted": 1}])
    client = _client(session)

    rows = await client.execute_write("MATCH (n) DETACH DELETE n RETURN count(n) AS deleted")

    assert rows == [{"deleted": 1}]
    assert session.access == ["write"]
    session.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_session_released_when_store_errors():
    session = FakeSession(error=ServiceUnavailable("connection refused"))
    client = _client(session)

    with pytest.raises(ConnectionFailure):
        await client.execute_read("RETURN 1")

    session.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_session_released_when_caller_raises():
    session = FakeSession()
    client = _client(session)

    with pytest.raises(RuntimeError):
        async with client.session():
            raise RuntimeError("caller failure")

    session.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_query_errors_become_query_failure():
    session = FakeSession(error=CypherSyntaxError("Invalid input"))
    client = _client(session)

    with pytest.raises(QueryFailure):
        await client.execute_write("CREATE (n:)")

    session.close.assert_awaited_once()


def test_translate_error_taxonomy():
    assert isinstance(translate_error(ServiceUnavailable("down")), ConnectionFailure)
    assert isinstance(translate_error(SessionExpired("gone")), ConnectionFailure)
    assert isinstance(translate_error(CypherSyntaxError("bad")), QueryFailure)

    timeout = translate_error(
        ClientError("failed to obtain a connection from the pool within 60.0s")
    )
    assert isinstance(timeout, ConnectionTimeout)
    assert isinstance(timeout, ConnectionFailure)

    other = ValueError("not a driver error")
    assert translate_error(other) is other


@pytest.mark.asyncio
async def test_close_tears_down_driver():
    session = FakeSession()
    client = _client(session)
    driver = client._driver

    await client.close()

    driver.close.assert_awaited_once()
    assert not client.connected


@pytest.mark.asyncio
async def test_health_check_reports_unreachable_store():
    session = FakeSession()
    client = _client(session)
    client._driver.verify_connectivity.side_effect = ServiceUnavailable("down")

    assert await client.health_check() is False


@pytest.mark.asyncio
async def test_connect_translates_unavailable_store():
    session = FakeSession()
    client = _client(session)
    client._driver.verify_connectivity.side_effect = ServiceUnavailable("down")

    with pytest.raises(ConnectionFailure):
        await client.connect()
