from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from docgraph.api.dependencies import get_catalog, get_client, get_store
from docgraph.config import Settings
from docgraph.core.exceptions import DocumentExistsError, InvalidLabelError, QueryFailure
from docgraph.main import create_app
from docgraph.schema.models import DocField, Document, DocumentPage, Module


@pytest.fixture
def store():
    fake = MagicMock()
    for method in ("list_documents", "get_document", "create_document", "update_document", "delete_document"):
        setattr(fake, method, AsyncMock())
    return fake


@pytest.fixture
def catalog():
    fake = MagicMock()
    fake.get_fields = AsyncMock()
    fake.get_modules = AsyncMock()
    fake.list_doctypes = AsyncMock(return_value=[])
    return fake


@pytest.fixture
def neo4j_client():
    fake = MagicMock()
    fake.health_check = AsyncMock(return_value=True)
    return fake


@pytest.fixture
def app(store, catalog, neo4j_client):
    application = create_app(Settings(default_page_size=20, max_page_size=100))
    application.dependency_overrides[get_store] = lambda: store
    application.dependency_overrides[get_catalog] = lambda: catalog
    application.dependency_overrides[get_client] = lambda: neo4j_client
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _doc(name, **data):
    return Document(doctype="Customer", name=name, data=data)


# =============================================================================
# MODULES / DOCTYPES
# =============================================================================


@pytest.mark.asyncio
async def test_modules(client, catalog):
    catalog.get_modules.return_value = [Module(moduleName="CRM", docTypeNames=["Customer", "Lead"])]
    response = await client.get("/api/modules")
    assert response.status_code == 200
    assert response.json() == [{"moduleName": "CRM", "docTypeNames": ["Customer", "Lead"]}]


@pytest.mark.asyncio
async def test_modules_store_failure_is_500(client, catalog):
    catalog.get_modules.side_effect = QueryFailure("boom")
    response = await client.get("/api/modules")
    assert response.status_code == 500


@pytest.mark.asyncio
async def test_doctype_fields(client, catalog):
    catalog.get_fields.return_value = [
        DocField(fieldname="status", fieldtype="Select", options="A\nB", reqd=1),
    ]
    response = await client.get("/api/doctypes/Sales%20Invoice")

    assert response.status_code == 200
    body = response.json()
    assert body[0]["fieldname"] == "status"
    assert body[0]["fieldtype"] == "Select"
    assert body[0]["reqd"] == 1
    catalog.get_fields.assert_awaited_once_with("Sales Invoice")


@pytest.mark.asyncio
async def test_unknown_doctype_is_404_but_fieldless_is_empty(client, catalog):
    catalog.get_fields.return_value = None
    assert (await client.get("/api/doctypes/Nope")).status_code == 404

    catalog.get_fields.return_value = []
    response = await client.get("/api/doctypes/Empty")
    assert response.status_code == 200
    assert response.json() == []


# =============================================================================
# DOCUMENTS
# =============================================================================


@pytest.mark.asyncio
async def test_list_envelope(client, store):
    store.list_documents.return_value = DocumentPage(data=[_doc("CUST-001", status="Active")], total=45)

    response = await client.get("/api/docs/Customer", params={"page": 3, "pageSize": 20})

    assert response.status_code == 200
    assert response.json() == {
        "data": [{"name": "CUST-001", "status": "Active"}],
        "total": 45,
        "page": 3,
        "pageSize": 20,
        "totalPages": 3,
    }
    store.list_documents.assert_awaited_once_with("Customer", page=3, page_size=20)


@pytest.mark.asyncio
async def test_list_defaults_and_empty_type(client, store):
    store.list_documents.return_value = DocumentPage(data=[], total=0)

    body = (await client.get("/api/docs/NeverSeen")).json()

    assert body["page"] == 1
    assert body["pageSize"] == 20
    assert body["totalPages"] == 0
    assert body["data"] == []


@pytest.mark.asyncio
async def test_trailing_slash_lists_instead_of_fetching_blank_name(client, store):
    store.list_documents.return_value = DocumentPage(data=[_doc("CUST-001")], total=1)

    response = await client.get("/api/docs/Customer/")

    assert response.status_code == 200
    assert response.json()["total"] == 1
    store.list_documents.assert_awaited_once_with("Customer", page=1, page_size=20)
    store.get_document.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"page": 0}, {"pageSize": 0}, {"pageSize": 101}, {"page": "x"}])
async def test_list_rejects_bad_window(client, store, params):
    response = await client.get("/api/docs/Customer", params=params)
    assert response.status_code == 422
    store.list_documents.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_with_percent_encoded_names(client, store):
    store.get_document.return_value = Document(doctype="Sales Invoice", name="INV/001", data={"total": 5})

    response = await client.get("/api/docs/Sales%20Invoice/INV%2F001")

    assert response.status_code == 200
    assert response.json() == {"name": "INV/001", "total": 5}
    store.get_document.assert_awaited_once_with("Sales Invoice", "INV/001")


@pytest.mark.asyncio
async def test_get_missing_is_404(client, store):
    store.get_document.return_value = None
    assert (await client.get("/api/docs/Customer/nope")).status_code == 404


@pytest.mark.asyncio
async def test_create_returns_201(client, store):
    store.create_document.return_value = _doc("CUS-004", customer_name="New")

    response = await client.post("/api/docs/Customer", json={"customer_name": "New"})

    assert response.status_code == 201
    assert response.json() == {"name": "CUS-004", "customer_name": "New"}
    store.create_document.assert_awaited_once_with("Customer", {"customer_name": "New"})


@pytest.mark.asyncio
async def test_create_duplicate_is_409(client, store):
    store.create_document.side_effect = DocumentExistsError("Customer", "CUST-001")
    response = await client.post("/api/docs/Customer", json={"name": "CUST-001"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_invalid_label_is_400(client, store):
    store.create_document.side_effect = InvalidLabelError("Invalid DocType name: ' '")
    response = await client.post("/api/docs/%20", json={})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_requires_an_object_body(client, store):
    response = await client.post("/api/docs/Customer", json=["not", "a", "map"])
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_merges_or_404s(client, store):
    store.update_document.return_value = _doc("CUST-001", status="Inactive")
    response = await client.put("/api/docs/Customer/CUST-001", json={"status": "Inactive"})
    assert response.status_code == 200
    assert response.json()["status"] == "Inactive"
    store.update_document.assert_awaited_once_with("Customer", "CUST-001", {"status": "Inactive"})

    store.update_document.return_value = None
    response = await client.put("/api/docs/Customer/nope", json={"status": "x"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_then_delete_again(client, store):
    store.delete_document.side_effect = [True, False]

    first = await client.delete("/api/docs/Customer/CUST-001")
    second = await client.delete("/api/docs/Customer/CUST-001")

    assert first.status_code == 200
    assert first.json() == {"success": True}
    assert second.status_code == 404


@pytest.mark.asyncio
async def test_store_failure_is_500(client, store):
    store.get_document.side_effect = QueryFailure("boom")
    assert (await client.get("/api/docs/Customer/CUST-001")).status_code == 500


# =============================================================================
# HEALTH / APP
# =============================================================================


@pytest.mark.asyncio
async def test_health_reports_store_and_catalog(client, catalog, neo4j_client):
    catalog.list_doctypes.return_value = ["Customer", "Lead"]
    body = (await client.get("/health")).json()
    assert body["status"] == "healthy"
    assert body["services"]["neo4j"]["status"] == "healthy"
    assert body["services"]["catalog"]["message"] == "2 DocTypes"

    catalog.list_doctypes.return_value = []
    assert (await client.get("/health")).json()["status"] == "degraded"

    neo4j_client.health_check.return_value = False
    body = (await client.get("/health")).json()
    assert body["status"] == "unhealthy"
    assert "catalog" not in body["services"]

    body = (await client.get("/health/ready")).json()
    assert body == {"ready": False, "checks": {"neo4j": False}}


@pytest.mark.asyncio
async def test_liveness_and_root(client):
    assert (await client.get("/health/live")).json()["alive"] is True
    assert (await client.get("/")).json()["status"] == "running"


@pytest.mark.asyncio
async def test_uninitialized_client_is_503():
    app = create_app(Settings())
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        response = await c.get("/api/modules")
    assert response.status_code == 503
