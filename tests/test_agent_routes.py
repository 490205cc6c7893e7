"""Agent pages: actionable requests, proposal builder, project management."""
import io
import re

from conftest import flashes

REQUESTS = [
    {"id": 1, "status": "Assigned", "priority": "High", "Category": {"name": "SEO Audit"},
     "Client": {"companyName": "Acme", "User": {"email": "dana@acme.com"}}},
    {"id": 2, "status": "Quoted", "Category": {"name": "Branding"}, "Client": {"companyName": "Globex"},
     "Proposal": {"id": 50, "status": "Draft", "pdfPath": "uploads\\proposals\\p50.pdf"}},
    {"id": 3, "status": "Converted", "Category": {"name": "Web Development"}, "Client": {"companyName": "Initech"}},
]

PROJECTS = [
    {"id": 7, "globalStatus": "In Progress", "progressPercent": 30, "Client": {"companyName": "Acme"}},
    {"id": 8, "globalStatus": "Pending", "Client": {"companyName": "Globex"}},
    {"id": 9, "globalStatus": "Delivered", "Client": {"companyName": "Initech"}},
]


def _draft(app, request_id="1", user_id="22"):
    return app.extensions["settings_store"].get(f"proposal_draft:{user_id}:{request_id}")


def _page_ids(response):
    return re.findall(r'name="item_id" value="([0-9a-f]+)"', response.data.decode())


def _row_data(rows):
    """Form fields for ``rows`` as the builder page posts them."""
    data = {"item_id": [row["id"] for row in rows]}
    for row in rows:
        data[f"description-{row['id']}"] = row.get("description", "")
        data[f"quantity-{row['id']}"] = str(row.get("quantity", 1))
        data[f"unit_price-{row['id']}"] = str(row.get("unit_price", 0))
    return data


def _seed_rows(response):
    return [{"id": item_id, "description": "Initial Setup & Planning", "quantity": 1, "unit_price": 500}
            for item_id in _page_ids(response)]


class TestDashboard:

    def test_only_actionable_requests_listed(self, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        fake_api.on("GET", "/projects", PROJECTS)
        r = as_agent.get("/agent/dashboard")
        body = r.data.decode()
        assert "SEO Audit" in body
        assert "Branding" in body
        assert "Initech" in body  # via the projects table
        assert "/agent/requests/3/proposal" not in body
        assert "/agent/proposals/50/send" in body
        assert "http://backend.test/uploads/proposals/p50.pdf" in body

    def test_single_toast_when_backend_fails(self, as_agent, fake_api):
        fake_api.on("GET", "/requests", status=500)
        r = as_agent.get("/agent/dashboard")
        assert r.data.count(b"Failed to load dashboard data") == 1
        assert fake_api.calls_to("GET", "/projects") == []

    def test_send_proposal(self, as_agent, fake_api):
        fake_api.on("POST", "/proposals/50/send", {"ok": True})
        r = as_agent.post("/agent/proposals/50/send")
        assert r.headers["Location"].endswith("/agent/dashboard")
        assert fake_api.last("POST", "/proposals/50/send")["json"] == {}
        assert "Proposal sent successfully!" in flashes(as_agent)


class TestProposalBuilder:

    def test_starts_seeded_without_saving(self, app, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        r = as_agent.get("/agent/requests/1/proposal")
        assert b"Initial Setup &amp; Planning" in r.data
        assert b"550.00" in r.data
        assert len(_page_ids(r)) == 1
        assert _draft(app) is None

    def test_add_then_update_rows(self, app, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        r = as_agent.get("/agent/requests/1/proposal")

        as_agent.post("/agent/requests/1/proposal", data={**_row_data(_seed_rows(r)), "action": "add"})
        state = _draft(app)
        assert len(state) == 2
        assert state[0]["id"] == _page_ids(r)[0]

        state[0].update(description="Design", quantity=2, unit_price=100)
        state[1].update(description="Hosting", unit_price=50)
        as_agent.post("/agent/requests/1/proposal", data={**_row_data(state), "action": "update"})

        r = as_agent.get("/agent/requests/1/proposal")
        assert b"250.00" in r.data
        assert b"25.00" in r.data
        assert b"275.00" in r.data

    def test_last_row_cannot_be_removed(self, app, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        rows = _seed_rows(as_agent.get("/agent/requests/1/proposal"))
        as_agent.post("/agent/requests/1/proposal", data={**_row_data(rows), "remove": rows[0]["id"]})
        assert [row["id"] for row in _draft(app)] == [rows[0]["id"]]
        assert "A proposal needs at least one line item." in flashes(as_agent)

    def test_remove_row(self, app, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        rows = _seed_rows(as_agent.get("/agent/requests/1/proposal"))
        as_agent.post("/agent/requests/1/proposal", data={**_row_data(rows), "action": "add"})
        state = _draft(app)
        as_agent.post("/agent/requests/1/proposal", data={**_row_data(state), "remove": state[1]["id"]})
        assert [row["id"] for row in _draft(app)] == [state[0]["id"]]

    def test_generate_posts_collapsed_prices_and_clears_draft(self, app, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        fake_api.on("POST", "/proposals", {"id": 51})
        rows = _seed_rows(as_agent.get("/agent/requests/1/proposal"))
        as_agent.post("/agent/requests/1/proposal", data={**_row_data(rows), "action": "update"})
        assert _draft(app) is not None

        rows[0].update(quantity=2, unit_price=100)
        r = as_agent.post("/agent/requests/1/proposal", data={**_row_data(rows), "action": "generate"})
        assert r.headers["Location"].endswith("/agent/dashboard")
        sent = fake_api.last("POST", "/proposals")["json"]
        assert sent == {"requestId": "1", "items": [{"description": "Initial Setup & Planning", "price": 200.0}]}
        assert "quantity" not in sent["items"][0]
        assert _draft(app) is None

    def test_generate_failure_keeps_draft(self, app, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        fake_api.on("POST", "/proposals", {"message": "Request already converted"}, status=400)
        rows = _seed_rows(as_agent.get("/agent/requests/1/proposal"))
        r = as_agent.post("/agent/requests/1/proposal", data={**_row_data(rows), "action": "generate"})
        assert r.headers["Location"].endswith("/agent/requests/1/proposal")
        assert [row["id"] for row in _draft(app)] == [rows[0]["id"]]
        assert flashes(as_agent) == ["Request already converted"]

    def test_fresh_discards_old_draft(self, app, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        rows = _seed_rows(as_agent.get("/agent/requests/1/proposal"))
        as_agent.post("/agent/requests/1/proposal", data={**_row_data(rows), "action": "add"})
        assert len(_draft(app)) == 2
        r = as_agent.get("/agent/requests/1/proposal?fresh=1")
        assert _draft(app) is None
        assert len(_page_ids(r)) == 1

    def test_drafts_are_kept_per_request(self, app, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        rows = _seed_rows(as_agent.get("/agent/requests/1/proposal"))
        as_agent.post("/agent/requests/1/proposal", data={**_row_data(rows), "action": "add"})
        other = _seed_rows(as_agent.get("/agent/requests/2/proposal"))
        as_agent.post("/agent/requests/2/proposal", data={**_row_data(other), "action": "update"})
        assert len(_draft(app, "1")) == 2
        assert len(_draft(app, "2")) == 1

    def test_session_cookie_stays_small(self, as_agent, fake_api):
        fake_api.on("GET", "/requests", [])
        for rid in range(1, 201):
            as_agent.get(f"/agent/requests/{rid}/proposal")
        for rid in range(1, 31):
            rows = [{"id": f"{rid:04x}{n:028x}", "description": "x" * 200, "quantity": 3, "unit_price": 99.5}
                    for n in range(40)]
            as_agent.post(f"/agent/requests/{rid}/proposal", data={**_row_data(rows), "action": "add"})

        cookie = as_agent.get_cookie("session")
        assert len(cookie.value) < 1024
        with as_agent.session_transaction() as sess:
            assert not [key for key in sess if "draft" in key]
            assert sess["api_token"] == "token-agent"

    def test_page_carries_submit_guard(self, as_agent, fake_api):
        fake_api.on("GET", "/requests", REQUESTS)
        r = as_agent.get("/agent/requests/1/proposal")
        body = r.data.decode()
        assert '<script id="submit-guard">' in body
        assert 'name="action" value="generate"' in body
        assert body.index('id="submit-guard"') > body.index('value="generate"')

    def test_totals_endpoint(self, as_agent):
        r = as_agent.post("/agent/proposals/totals", json={"items": [
            {"quantity": 2, "unit_price": 100}, {"quantity": "1", "unit_price": "50"}, {"quantity": "x", "unit_price": 9},
        ]})
        assert r.get_json() == {"subtotal": "250.00", "tax": "25.00", "total": "275.00"}


class TestProjects:

    def test_filter_by_ui_status(self, as_agent, fake_api):
        fake_api.on("GET", "/projects", PROJECTS)
        r = as_agent.get("/agent/projects?status=planning")
        body = r.data.decode()
        assert "Globex" in body
        assert "Acme" not in body

    def test_unknown_filter_shows_all(self, as_agent, fake_api):
        fake_api.on("GET", "/projects", PROJECTS)
        r = as_agent.get("/agent/projects?status=bogus")
        assert b"Acme" in r.data and b"Initech" in r.data

    def test_manage_page(self, as_agent, fake_api):
        fake_api.on("GET", "/projects/7", {**PROJECTS[0], "ecd": "2025-05-20T00:00:00.000Z"})
        fake_api.on("GET", "/projects/7/notes", [])
        r = as_agent.get("/agent/projects/7")
        assert b'value="2025-05-20"' in r.data
        assert fake_api.calls_to("GET", "/projects/7/vault") == []

    def test_progress_is_clamped(self, as_agent, fake_api):
        fake_api.on("PATCH", "/projects/7", {})
        r = as_agent.post("/agent/projects/7", data={"progress": "140", "ecd": "2025-06-01"})
        assert r.status_code == 302
        assert fake_api.last("PATCH", "/projects/7")["json"] == {"progressPercent": 100, "ecd": "2025-06-01"}
        assert "Project status updated successfully" in flashes(as_agent)

    def test_blank_ecd_sent_as_null(self, as_agent, fake_api):
        fake_api.on("PATCH", "/projects/7", {})
        as_agent.post("/agent/projects/7", data={"progress": "10", "ecd": ""})
        assert fake_api.last("PATCH", "/projects/7")["json"] == {"progressPercent": 10, "ecd": None}

    def test_update_failure(self, as_agent, fake_api):
        fake_api.on("PATCH", "/projects/7", status=500)
        as_agent.post("/agent/projects/7", data={"progress": "10"})
        assert flashes(as_agent) == ["Failed to update status"]

    def test_vault_reveal(self, as_agent, fake_api):
        fake_api.on("GET", "/projects/7", PROJECTS[0])
        fake_api.on("GET", "/projects/7/notes", [])
        fake_api.on("GET", "/projects/7/vault", {"vault": "cpanel: acme / pa55"})
        r = as_agent.get("/agent/projects/7?vault=1")
        assert b"cpanel: acme / pa55" in r.data

    def test_vault_denied(self, as_agent, fake_api):
        fake_api.on("GET", "/projects/7", PROJECTS[0])
        fake_api.on("GET", "/projects/7/notes", [])
        fake_api.on("GET", "/projects/7/vault", {"message": "Forbidden"}, status=403)
        r = as_agent.get("/agent/projects/7?vault=1")
        assert r.status_code == 200
        assert b"Failed to access client vault" in r.data

    def test_deliverable_upload(self, as_agent, fake_api):
        fake_api.on("POST", "/projects/7/assets", {"id": 5})
        as_agent.post(
            "/agent/projects/7/deliverables",
            data={"file": (io.BytesIO(b"PK"), "final.zip")},
            content_type="multipart/form-data",
        )
        assert fake_api.last("POST", "/projects/7/assets")["params"] == {"type": "Deliverable"}

    def test_upload_without_file(self, as_agent, fake_api):
        as_agent.post("/agent/projects/7/deliverables", data={}, content_type="multipart/form-data")
        assert fake_api.calls_to("POST", "/projects/7/assets") == []
        assert flashes(as_agent) == ["Choose a file to upload."]


class TestClients:

    def test_clients_with_stats(self, as_agent, fake_api):
        fake_api.on("GET", "/clients/agent-list", [
            {"id": 1, "fullName": "Dana Client", "companyName": "Acme", "activeProjects": 2},
            {"id": 2, "fullName": "Lee", "companyName": "Globex", "activeProjects": 0},
        ])
        r = as_agent.get("/agent/clients")
        assert b"Dana Client" in r.data
        assert b"Globex" in r.data

    def test_clients_empty(self, as_agent, fake_api):
        fake_api.on("GET", "/clients/agent-list", [])
        r = as_agent.get("/agent/clients")
        assert b"No clients assigned to you yet." in r.data
