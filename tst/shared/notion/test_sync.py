"""Tests for the Notion directory sync (respx mock)."""

import json

import httpx
import pytest
import respx

from src.shared.clients.database import Client
from src.shared.errors import NotionAPIError, NotionNotConfiguredError, SyncError
from src.shared.integrations.config import IntegrationConfig
from src.shared.notion.client import NOTION_API_BASE_URL, NotionClient
from src.shared.notion.sync import NotionDirectorySync, get_sync_status, notion_settings

CLIENT_DB = "clients-db"
TEAM_DB = "team-db"


def client_page(page_id, name, status="Active", **extra):
    props = {
        "Client": {"type": "title", "title": [{"plain_text": name}]},
        "Status": {"type": "select", "select": {"name": status}},
        "Priority": {"type": "select", "select": {"name": "P2"}},
        "IT Syncs": {"type": "select", "select": {"name": "Bi-Weekly"}},
        "SE": {"type": "relation", "relation": [{"id": "tm-1"}]},
        "Secondaries": {"type": "relation", "relation": [{"id": "tm-2"}, {"id": "tm-unknown"}]},
        "HPM": {"type": "number", "number": 10},
        "Compliance": {"type": "multi_select", "multi_select": [{"name": "SOC 2"}]},
        "Start Date": {"type": "date", "date": {"start": "2023-01-15"}},
        "Website": {"type": "url", "url": f"https://{page_id}.test"},
    }
    props.update(extra)
    return {"id": page_id, "properties": props}


def team_page(page_id, name):
    return {"id": page_id, "properties": {"Name": {"type": "title", "title": [{"plain_text": name}]}}}


TEAM = [team_page("tm-1", "Alex Engineer"), team_page("tm-2", "Blair Consultant")]


def paged_query(pages_by_db, page_size=2, fail_on_cursor=None):
    """side_effect for POST /v1/databases/{id}/query that pages through fixed results."""
    def handler(request: httpx.Request, database_id: str) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        cursor = body.get("start_cursor")
        if fail_on_cursor is not None and cursor == fail_on_cursor:
            return httpx.Response(502, json={"object": "error", "message": "Bad gateway"})
        start = int(cursor) if cursor else 0
        results = pages_by_db.get(database_id, [])
        chunk = results[start:start + page_size]
        more = start + page_size < len(results)
        return httpx.Response(200, json={
            "results": chunk,
            "has_more": more,
            "next_cursor": str(start + page_size) if more else None,
        })
    return handler


def mock_notion(pages_by_db, **kwargs):
    router = respx.mock(base_url=NOTION_API_BASE_URL, assert_all_called=False)
    router.post(path__regex=r"/v1/databases/(?P<database_id>[^/]+)/query").mock(
        side_effect=paged_query(pages_by_db, **kwargs)
    )
    return router


async def run_sync(db_session, team_db=TEAM_DB):
    async with NotionClient("secret_test") as notion:
        return await NotionDirectorySync(db_session, notion, CLIENT_DB, team_db).sync_clients()


async def test_first_sync_creates_clients(db_session) -> None:
    pages = [client_page("p1", "Acme"), client_page("p2", "Globex", status="Exiting"), client_page("p3", "Initech")]
    with mock_notion({CLIENT_DB: pages, TEAM_DB: TEAM}):
        report = await run_sync(db_session)

    assert (report.synced, report.created, report.updated, report.unchanged) == (3, 3, 0, 0)
    assert report.errors == []

    acme = db_session.query(Client).filter(Client.notion_page_id == "p1").one()
    assert acme.name == "Acme"
    assert acme.status == "ACTIVE"
    assert acme.priority == "P2"
    assert acme.default_cadence == "BIWEEKLY"
    assert acme.system_engineer_name == "Alex Engineer"
    assert acme.secondary_consultant_names == ["Blair Consultant"]
    assert acme.hours_per_month == 10.0
    assert acme.compliance_frameworks == ["SOC 2"]
    assert acme.notion_last_synced is not None

    globex = db_session.query(Client).filter(Client.notion_page_id == "p2").one()
    assert globex.status == "OFFBOARDING"


async def test_second_pass_over_unchanged_data_writes_nothing(db_session) -> None:
    pages = [client_page("p1", "Acme"), client_page("p2", "Globex")]
    with mock_notion({CLIENT_DB: pages, TEAM_DB: TEAM}):
        await run_sync(db_session)
    first_synced = {c.notion_page_id: (c.notion_last_synced, c.updated_at) for c in db_session.query(Client)}

    with mock_notion({CLIENT_DB: pages, TEAM_DB: TEAM}):
        report = await run_sync(db_session)

    assert (report.synced, report.created, report.updated, report.unchanged) == (2, 0, 0, 2)
    db_session.expire_all()
    assert {c.notion_page_id: (c.notion_last_synced, c.updated_at) for c in db_session.query(Client)} == first_synced


async def test_new_and_changed_records_are_counted(db_session) -> None:
    with mock_notion({CLIENT_DB: [client_page("p1", "Acme"), client_page("p2", "Globex")], TEAM_DB: TEAM}):
        await run_sync(db_session)

    remote = [
        client_page("p1", "Acme"),
        client_page("p2", "Globex Corporation"),
        client_page("p3", "Initech"),
        client_page("p4", "Umbrella"),
    ]
    with mock_notion({CLIENT_DB: remote, TEAM_DB: TEAM}):
        report = await run_sync(db_session)

    assert (report.synced, report.created, report.updated, report.unchanged) == (4, 2, 1, 1)
    db_session.expire_all()
    assert db_session.query(Client).filter(Client.notion_page_id == "p2").one().name == "Globex Corporation"


async def test_remote_wins_but_dns_results_are_kept(db_session) -> None:
    db_session.add(Client(notion_page_id="p1", name="Locally Renamed", dmarc="reject"))
    db_session.commit()

    with mock_notion({CLIENT_DB: [client_page("p1", "Acme")], TEAM_DB: TEAM}):
        report = await run_sync(db_session)

    assert report.updated == 1
    db_session.expire_all()
    row = db_session.query(Client).filter(Client.notion_page_id == "p1").one()
    assert row.name == "Acme"
    assert row.dmarc == "reject"


async def test_untransformable_record_is_reported_and_skipped(db_session) -> None:
    bad = client_page("p2", "Broken", **{"Start Date": {"type": "date", "date": {"start": "not-a-date"}}})
    with mock_notion({CLIENT_DB: [client_page("p1", "Acme"), bad], TEAM_DB: TEAM}):
        report = await run_sync(db_session)

    assert report.synced == 2
    assert report.created == 1
    assert len(report.errors) == 1
    assert report.errors[0].startswith("p2:")
    assert db_session.query(Client).filter(Client.notion_page_id == "p2").first() is None


async def test_failure_mid_pagination_keeps_partial_counts(db_session) -> None:
    pages = [client_page(f"p{i}", f"Client {i}") for i in range(1, 6)]
    with mock_notion({CLIENT_DB: pages, TEAM_DB: TEAM}, fail_on_cursor="4"):
        with pytest.raises(SyncError) as exc_info:
            await run_sync(db_session)

    report = exc_info.value.report
    assert (report.synced, report.created) == (4, 4)
    assert isinstance(exc_info.value.__cause__, NotionAPIError)
    assert db_session.query(Client).count() == 4


async def test_team_member_failure_leaves_names_empty(db_session) -> None:
    with respx.mock(base_url=NOTION_API_BASE_URL) as notion:
        notion.post(f"/v1/databases/{TEAM_DB}/query").mock(return_value=httpx.Response(401, json={"message": "Unauthorized"}))
        notion.post(f"/v1/databases/{CLIENT_DB}/query").mock(
            return_value=httpx.Response(200, json={"results": [client_page("p1", "Acme")], "has_more": False})
        )
        report = await run_sync(db_session)

    assert report.created == 1
    row = db_session.query(Client).one()
    assert row.system_engineer_name is None
    assert row.secondary_consultant_names == []


async def test_team_member_failure_keeps_stored_names(db_session) -> None:
    with mock_notion({CLIENT_DB: [client_page("p1", "Acme")], TEAM_DB: TEAM}):
        await run_sync(db_session)

    with respx.mock(base_url=NOTION_API_BASE_URL) as notion:
        notion.post(f"/v1/databases/{TEAM_DB}/query").mock(return_value=httpx.Response(401, json={"message": "Unauthorized"}))
        notion.post(f"/v1/databases/{CLIENT_DB}/query").mock(
            return_value=httpx.Response(200, json={"results": [client_page("p1", "Acme")], "has_more": False})
        )
        report = await run_sync(db_session)

    assert (report.updated, report.unchanged) == (0, 1)
    db_session.expire_all()
    row = db_session.query(Client).one()
    assert row.system_engineer_name == "Alex Engineer"
    assert row.secondary_consultant_names == ["Blair Consultant"]


async def test_links_access_reviews_and_policies_are_synced(db_session) -> None:
    page = client_page(
        "p1",
        "Acme",
        **{
            "Trello": {"type": "url", "url": "https://trello.com/b/acme"},
            "Accepted Password Policy?": {"type": "select", "select": {"name": "Yes"}},
            "Access Requests": {"type": "select", "select": {"name": "Zendesk"}},
            "HR Processes": {"type": "multi_select", "multi_select": [{"name": "Onboarding"}, {"name": "Offboarding"}]},
            "Policies": {"type": "multi_select", "multi_select": [{"name": "Acceptable Use"}]},
            "Estimation": {"type": "number", "number": 40},
        },
    )
    with mock_notion({CLIENT_DB: [page], TEAM_DB: TEAM}):
        await run_sync(db_session)

    row = db_session.query(Client).one()
    assert row.trello_url == "https://trello.com/b/acme"
    assert row.accepted_password_policy is True
    assert row.access_requests == "Zendesk"
    assert row.hr_processes == ["Onboarding", "Offboarding"]
    assert row.policies == ["Acceptable Use"]
    assert row.estimation == "40"
    assert row.one_password_url is None

    with mock_notion({CLIENT_DB: [page], TEAM_DB: TEAM}):
        report = await run_sync(db_session)
    assert report.unchanged == 1


async def test_compliance_relations_are_resolved_once(db_session) -> None:
    compliance = {"type": "relation", "relation": [{"id": "fw-1"}]}
    pages = [client_page("p1", "Acme", Compliance=compliance), client_page("p2", "Globex", Compliance=compliance)]
    with mock_notion({CLIENT_DB: pages}) as notion:
        framework = notion.get("/v1/pages/fw-1").mock(return_value=httpx.Response(200, json=team_page("fw-1", "HIPAA")))
        report = await run_sync(db_session, team_db=None)

    assert report.created == 2
    assert framework.call_count == 1
    assert {tuple(c.compliance_frameworks) for c in db_session.query(Client)} == {("HIPAA",)}


async def test_sync_single_client(db_session) -> None:
    with respx.mock(base_url=NOTION_API_BASE_URL) as notion:
        notion.get("/v1/pages/p9").mock(return_value=httpx.Response(200, json=client_page("p9", "Stark")))
        async with NotionClient("secret_test") as client:
            row, outcome = await NotionDirectorySync(db_session, client, CLIENT_DB).sync_single_client("p9")

    assert outcome == "created"
    assert row.name == "Stark"
    assert row.notion_page_id == "p9"


def test_notion_settings_requires_key_and_database():
    with pytest.raises(NotionNotConfiguredError):
        notion_settings(IntegrationConfig(provider="notion", api_key="k"))
    with pytest.raises(NotionNotConfiguredError):
        notion_settings(IntegrationConfig(provider="notion", config={"clientDatabaseId": "db"}))

    config = IntegrationConfig(provider="notion", api_key="k", config={"clientDatabaseId": "db"})
    assert notion_settings(config) == ("k", "db", None)


def test_sync_status(db_session):
    db_session.add_all([Client(name="Linked", notion_page_id="p1"), Client(name="Local only")])
    db_session.commit()

    status = get_sync_status(db_session, IntegrationConfig(provider="notion"))
    assert status.configured is False
    assert status.total_clients == 2
    assert status.linked_clients == 1
    assert status.last_synced_at is None
