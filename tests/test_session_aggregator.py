"""Tests for multi-page session aggregation and member services."""

import httpx
import pytest

from studiodesk.core import FetchOutcome, ValidationException
from studiodesk.members.application import (
    MemberDirectoryService,
    MomenceProxyService,
    SessionAggregator,
)
from studiodesk.members.domain import LocationDirectory
from studiodesk.members.domain.normalizers import DETAIL_KEY

PAGE_SIZE = 3


def session(session_id: int, **fields) -> dict:
    return {"id": session_id, "name": f"Class {session_id}", "capacity": 10, "bookingCount": 4, **fields}


def page_handler(pages, total_count=None):
    """Serve `pages[n]` for ?page=n, empty beyond the last page."""
    def handle(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        payload = pages[page] if page < len(pages) else []
        pagination = {"page": page, "pageSize": PAGE_SIZE}
        if total_count is not None:
            pagination["totalCount"] = total_count
        return httpx.Response(200, json={"payload": payload, "pagination": pagination})
    return handle


def serve_details(fake_momence, session_ids, failing=()):
    for sid in session_ids:
        if sid in failing:
            fake_momence.json_route(f"/host/sessions/{sid}", {"message": "boom"}, status_code=500)
        else:
            fake_momence.json_route(
                f"/host/sessions/{sid}",
                {"id": sid, "description": f"Detail {sid}", "bookingCount": 9},
            )


@pytest.fixture
def aggregator(momence_client, lookup_tables) -> SessionAggregator:
    return SessionAggregator(momence_client, LocationDirectory(lookup_tables.locations), page_size=PAGE_SIZE)


class TestSessionAggregator:

    @pytest.mark.asyncio
    async def test_stops_on_short_page(self, aggregator, fake_momence):
        pages = [[session(1), session(2), session(3)], [session(4)]]
        fake_momence.route("/host/sessions", page_handler(pages))
        serve_details(fake_momence, [1, 2, 3, 4])

        sessions = await aggregator.list_all_sessions_with_details(max_pages=5)

        assert [s["id"] for s in sessions] == [1, 2, 3, 4]
        assert len(fake_momence.requests_to("/host/sessions")) == 2

    @pytest.mark.asyncio
    async def test_stops_when_total_count_reached(self, aggregator, fake_momence):
        pages = [[session(1), session(2), session(3)], [session(4), session(5), session(6)]]
        fake_momence.route("/host/sessions", page_handler(pages, total_count=3))
        serve_details(fake_momence, range(1, 7))

        sessions = await aggregator.list_all_sessions_with_details(max_pages=5)

        assert [s["id"] for s in sessions] == [1, 2, 3]
        assert len(fake_momence.requests_to("/host/sessions")) == 1

    @pytest.mark.asyncio
    async def test_stops_on_empty_page(self, aggregator, fake_momence):
        pages = [[session(1), session(2), session(3)]]
        fake_momence.route("/host/sessions", page_handler(pages))
        serve_details(fake_momence, [1, 2, 3])

        sessions = await aggregator.list_all_sessions_with_details(max_pages=5)

        assert len(sessions) == 3
        assert len(fake_momence.requests_to("/host/sessions")) == 2

    @pytest.mark.asyncio
    async def test_respects_max_pages(self, aggregator, fake_momence):
        pages = [[session(p * 3 + i) for i in range(1, 4)] for p in range(4)]
        fake_momence.route("/host/sessions", page_handler(pages, total_count=1000))
        serve_details(fake_momence, range(1, 13))

        sessions = await aggregator.list_all_sessions_with_details(max_pages=2)

        assert [s["id"] for s in sessions] == [1, 2, 3, 4, 5, 6]
        requested_pages = [r.url.params["page"] for r in fake_momence.requests_to("/host/sessions")]
        assert requested_pages == ["0", "1"]

    @pytest.mark.asyncio
    async def test_detail_failure_keeps_summary(self, aggregator, fake_momence):
        fake_momence.route("/host/sessions", page_handler([[session(1), session(2)]]))
        serve_details(fake_momence, [1, 2], failing={2})

        sessions = await aggregator.list_all_sessions_with_details(max_pages=1)

        assert sessions[0][DETAIL_KEY]["description"] == "Detail 1"
        assert DETAIL_KEY not in sessions[1]
        assert sessions[1]["name"] == "Class 2"

    @pytest.mark.asyncio
    async def test_location_name_resolves_to_filter(self, aggregator, fake_momence):
        fake_momence.route("/host/sessions", page_handler([]))

        await aggregator.list_all_sessions_with_details(max_pages=1, location_name="Kwality House Studio")

        params = fake_momence.requests_to("/host/sessions")[0].url.params
        assert params["locationId"] == "9030"

    @pytest.mark.asyncio
    async def test_unknown_location_means_no_filter(self, aggregator, fake_momence):
        fake_momence.route("/host/sessions", page_handler([]))

        await aggregator.list_all_sessions_with_details(max_pages=1, location_name="Juhu Pop-up")

        params = fake_momence.requests_to("/host/sessions")[0].url.params
        assert "locationId" not in params

    @pytest.mark.asyncio
    async def test_upstream_failure_gives_empty_list(self, aggregator, fake_momence):
        fake_momence.json_route("/host/sessions", {"message": "down"}, status_code=503)

        assert await aggregator.list_all_sessions_with_details(max_pages=3) == []
        assert len(fake_momence.requests_to("/host/sessions")) == 1

    @pytest.mark.asyncio
    async def test_list_sessions_normalizes_with_details(self, aggregator, fake_momence):
        fake_momence.route("/host/sessions", page_handler([[session(1), session(2)]]))
        serve_details(fake_momence, [1, 2], failing={2})

        sessions = await aggregator.list_sessions(max_pages=1)

        assert sessions[0].has_details is True
        assert sessions[0].booking_count == 9
        assert sessions[0].utilization_rate == 90
        assert sessions[1].has_details is False
        assert sessions[1].booking_count == 4
        assert sessions[1].available_spots == 6

    @pytest.mark.asyncio
    async def test_sessions_by_location_is_single_page(self, aggregator, fake_momence):
        fake_momence.route("/host/sessions", page_handler([[session(1), session(2), session(3)]]))

        result = await aggregator.get_sessions_by_location("Supreme HQ, Bandra")

        assert result.ok
        assert len(result.value["payload"]) == 3
        requests = fake_momence.requests_to("/host/sessions")
        assert len(requests) == 1
        assert requests[0].url.params["locationId"] == "29821"
        assert fake_momence.requests_to("/host/sessions/1") == []


class TestMemberDirectory:

    @pytest.mark.asyncio
    async def test_short_query_returns_nothing(self, momence_client, fake_momence):
        service = MemberDirectoryService(momence_client)

        assert await service.search_members(" p ") == []
        assert fake_momence.requests == []

    @pytest.mark.asyncio
    async def test_search_normalizes_members(self, momence_client, fake_momence):
        fake_momence.json_route("/host/members", {
            "payload": [{"id": 7, "firstName": "Priya", "lastName": "Shah", "visits": {"total": 12}}],
            "pagination": {"totalCount": 1},
        })
        service = MemberDirectoryService(momence_client)

        members = await service.search_members("pri")

        assert members[0].id == "7"
        assert members[0].full_name == "Priya Shah"
        assert members[0].email == ""
        assert members[0].activity_level == "regular"

    @pytest.mark.asyncio
    async def test_profile_combines_sessions_and_memberships(self, momence_client, fake_momence):
        fake_momence.json_route("/host/members/7", {"id": 7, "firstName": "Priya", "visits": {"total": 60}})
        fake_momence.json_route("/host/members/7/sessions", {
            "payload": [
                {"id": i, "checkedIn": i % 2 == 0, "session": {"id": 100 + i, "name": f"Barre {i}"}}
                for i in range(1, 8)
            ],
            "pagination": {"totalCount": 7},
        })
        fake_momence.json_route("/host/members/7/bought-memberships/active", {
            "payload": [{"id": 3, "isFrozen": True, "membership": {"id": 9, "name": "Unlimited"}}],
            "pagination": {"totalCount": 1},
        })
        service = MemberDirectoryService(momence_client)

        profile = await service.get_member_profile("7")

        assert profile.membership_status == "frozen"
        assert profile.activity_level == "vip"
        assert profile.total_visits == 7
        assert profile.booking_visits == 3
        assert [s.name for s in profile.recent_sessions] == [f"Barre {i}" for i in range(3, 8)]
        assert profile.last_session.name == "Barre 7"
        params = fake_momence.requests_to("/host/members/7/sessions")[0].url.params
        assert params["includeCancelled"] == "true"
        assert params["sortOrder"] == "ASC"

    @pytest.mark.asyncio
    async def test_profile_missing_member(self, momence_client, fake_momence):
        fake_momence.json_route("/host/members/404", {"message": "missing"}, status_code=404)
        service = MemberDirectoryService(momence_client)

        assert await service.get_member_profile("404") is None

    @pytest.mark.asyncio
    async def test_bookings_are_normalized(self, momence_client, fake_momence):
        fake_momence.json_route("/host/members/7/bookings", {
            "payload": [{"id": 1, "checkedIn": True, "session": {"id": 55, "name": "Power Cycle"}}],
        })
        service = MemberDirectoryService(momence_client)

        bookings = await service.get_member_bookings("7")

        assert bookings[0].session_id == "55"
        assert bookings[0].checked_in is True


class TestMomenceProxy:

    @pytest.mark.asyncio
    async def test_unknown_action_is_rejected(self, momence_client):
        with pytest.raises(ValidationException):
            await MomenceProxyService(momence_client).dispatch("deleteEverything")

    @pytest.mark.asyncio
    async def test_missing_member_id_is_rejected(self, momence_client):
        with pytest.raises(ValidationException, match="memberId"):
            await MomenceProxyService(momence_client).dispatch("getMemberSessions")

    @pytest.mark.asyncio
    async def test_returns_raw_upstream_json(self, momence_client, fake_momence):
        body = {"id": 77, "name": "Mat 57", "someUnmappedField": [1, 2]}
        fake_momence.json_route("/host/sessions/77", body)

        result = await MomenceProxyService(momence_client).dispatch("getSessionDetails", session_id="77")

        assert result.ok
        assert result.value == body

    @pytest.mark.asyncio
    async def test_upstream_failure_is_not_ok(self, momence_client, fake_momence):
        fake_momence.json_route("/host/members", {"message": "down"}, status_code=500)

        result = await MomenceProxyService(momence_client).dispatch("searchMembers", query="pri")

        assert result.outcome == FetchOutcome.UPSTREAM_ERROR

    @pytest.mark.asyncio
    async def test_search_orders_by_last_seen(self, momence_client, fake_momence):
        fake_momence.json_route("/host/members", {"payload": []})

        await MomenceProxyService(momence_client).dispatch("searchMembers", query="pri", page=1, page_size=25)

        params = fake_momence.api_requests[0].url.params
        assert params["sortBy"] == "lastSeenAt"
        assert params["sortOrder"] == "DESC"
        assert params["pageSize"] == "25"

    @pytest.mark.asyncio
    async def test_session_listing_has_no_time_bound(self, momence_client, fake_momence):
        fake_momence.json_route("/host/sessions", {"payload": []})

        await MomenceProxyService(momence_client).dispatch("getSessions")

        params = fake_momence.api_requests[0].url.params
        assert "startsBefore" not in params
        assert params["includeCancelled"] == "false"
        assert params["sortBy"] == "startsAt"
