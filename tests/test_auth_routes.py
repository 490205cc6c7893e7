"""Sign-in, registration, session expiry and role gating."""
from conftest import flashes, login_as


def _login_payload(**user):
    base = {"id": 5, "fullName": "Dana Client", "email": "dana@acme.com", "role": "Client", "status": "Active"}
    return {"token": "jwt-123", "user": {**base, **user}}


class TestLogin:

    def test_form_renders(self, client):
        r = client.get("/login")
        assert r.status_code == 200
        assert b"Sign in" in r.data

    def test_success_redirects_to_role_dashboard(self, client, fake_api):
        fake_api.on("POST", "/auth/login", _login_payload())
        r = client.post("/login", data={"email": "Dana@Acme.com", "password": "secret123"})
        assert r.status_code == 302
        assert r.headers["Location"].endswith("/client/dashboard")
        assert fake_api.last("POST", "/auth/login")["json"] == {"email": "dana@acme.com", "password": "secret123"}
        with client.session_transaction() as sess:
            assert sess["api_token"] == "jwt-123"
            assert sess["user"]["role"] == "client"

    def test_agent_lands_on_agent_dashboard(self, client, fake_api):
        fake_api.on("POST", "/auth/login", _login_payload(role="Agent"))
        r = client.post("/login", data={"email": "sam@bizdesk.io", "password": "secret123"})
        assert r.headers["Location"].endswith("/agent/dashboard")

    def test_next_param_is_honoured_for_local_paths(self, client, fake_api):
        fake_api.on("POST", "/auth/login", _login_payload())
        r = client.post("/login?next=/client/projects", data={"email": "d@acme.com", "password": "x"})
        assert r.headers["Location"].endswith("/client/projects")

    def test_next_param_rejects_other_hosts(self, client, fake_api):
        fake_api.on("POST", "/auth/login", _login_payload())
        r = client.post("/login?next=//evil.test/", data={"email": "d@acme.com", "password": "x"})
        assert r.headers["Location"].endswith("/client/dashboard")

    def test_bad_credentials(self, client, fake_api):
        fake_api.on("POST", "/auth/login", {}, status=401)
        r = client.post("/login", data={"email": "d@acme.com", "password": "wrong"})
        assert r.status_code == 200
        assert b"Invalid email or password." in r.data
        with client.session_transaction() as sess:
            assert "api_token" not in sess

    def test_server_message_wins(self, client, fake_api):
        fake_api.on("POST", "/auth/login", {"message": "Too many attempts"}, status=429)
        r = client.post("/login", data={"email": "d@acme.com", "password": "wrong"})
        assert b"Too many attempts" in r.data

    def test_pending_account_goes_to_waiting_page(self, client, fake_api):
        fake_api.on("POST", "/auth/login", _login_payload(status="Pending", pendingApproval=True))
        r = client.post("/login", data={"email": "d@acme.com", "password": "x"})
        assert r.headers["Location"].endswith("/pending-approval")
        with client.session_transaction() as sess:
            assert "api_token" not in sess

    def test_deactivated_account_refused(self, client, fake_api):
        fake_api.on("POST", "/auth/login", _login_payload(status="Rejected"))
        r = client.post("/login", data={"email": "d@acme.com", "password": "x"})
        assert r.status_code == 200
        assert b"Your account is deactivated. Contact support." in r.data

    def test_backend_down(self, client, fake_api):
        import requests
        fake_api.on("POST", "/auth/login", error=requests.Timeout("slow"))
        r = client.post("/login", data={"email": "d@acme.com", "password": "x"})
        assert b"The server could not be reached" in r.data

    def test_logout_clears_session(self, as_client):
        r = as_client.get("/logout")
        assert r.status_code == 302
        with as_client.session_transaction() as sess:
            assert "api_token" not in sess
            assert "user" not in sess


class TestRegister:

    def test_register_then_wait(self, client, fake_api):
        fake_api.on("POST", "/auth/register", {"id": 9})
        r = client.post("/register", data={
            "name": "Dana Client", "company": "Acme", "email": "dana@acme.com", "phone": "555-0101",
            "password": "secret123", "password2": "secret123",
        })
        assert r.status_code == 302
        assert r.headers["Location"].endswith("/pending-approval")
        assert fake_api.last("POST", "/auth/register")["json"]["companyName"] == "Acme"

        page = client.get("/pending-approval")
        assert b"dana@acme.com" in page.data

    def test_password_mismatch_stays_local(self, client, fake_api):
        r = client.post("/register", data={
            "name": "Dana", "email": "dana@acme.com", "password": "secret123", "password2": "other123",
        })
        assert r.status_code == 200
        assert fake_api.calls_to("POST", "/auth/register") == []

    def test_duplicate_email_message(self, client, fake_api):
        fake_api.on("POST", "/auth/register", {"message": "Email already registered"}, status=400)
        r = client.post("/register", data={
            "name": "Dana", "email": "dana@acme.com", "password": "secret123", "password2": "secret123",
        })
        assert b"Email already registered" in r.data


class TestGating:

    def test_anonymous_redirected_to_login(self, client):
        r = client.get("/client/dashboard")
        assert r.status_code == 302
        assert "/login" in r.headers["Location"]

    def test_wrong_role_is_forbidden(self, as_client):
        assert as_client.get("/admin/dashboard").status_code == 403
        assert as_client.get("/agent/dashboard").status_code == 403

    def test_expired_token_signs_out(self, as_client, fake_api):
        fake_api.on("GET", "/requests", {"message": "jwt expired"}, status=401)
        r = as_client.get("/client/dashboard")
        assert r.status_code == 302
        assert "/login" in r.headers["Location"]
        with as_client.session_transaction() as sess:
            assert "api_token" not in sess

    def test_index_redirects_signed_in_users(self, as_admin):
        r = as_admin.get("/")
        assert r.headers["Location"].endswith("/admin/dashboard")

    def test_home_for_visitors(self, client):
        assert client.get("/").status_code == 200


class TestProfile:

    def test_profile_prefills_from_backend(self, as_client, fake_api):
        fake_api.on("GET", "/auth/me", {"fullName": "Dana C.", "mobile": "555-0199"})
        r = as_client.get("/profile")
        assert r.status_code == 200
        assert b"555-0199" in r.data

    def test_profile_update(self, as_client, fake_api):
        fake_api.on("PUT", "/auth/me", {})
        r = as_client.post("/profile", data={"full_name": "Dana Q", "phone": "1", "new_password": "", "confirm_password": ""})
        assert r.status_code == 302
        assert fake_api.last("PUT", "/auth/me")["json"] == {"fullName": "Dana Q", "mobile": "1"}
        with as_client.session_transaction() as sess:
            assert sess["user"]["name"] == "Dana Q"
        assert "Profile updated successfully" in flashes(as_client)

    def test_expired_token_on_update_signs_out(self, as_client, fake_api):
        fake_api.on("PUT", "/auth/me", {"message": "jwt expired"}, status=401)
        r = as_client.post("/profile", data={"full_name": "Dana Q", "phone": "1"})
        assert r.status_code == 302
        assert "/login" in r.headers["Location"]
        with as_client.session_transaction() as sess:
            assert "user" not in sess

    def test_update_rejected_keeps_session(self, as_client, fake_api):
        fake_api.on("GET", "/auth/me", {})
        fake_api.on("PUT", "/auth/me", {"message": "Phone already in use"}, status=409)
        r = as_client.post("/profile", data={"full_name": "Dana Q", "phone": "1"})
        assert r.status_code == 200
        assert b"Phone already in use" in r.data
        with as_client.session_transaction() as sess:
            assert sess["user"]["name"] == "Dana Client"

    def test_password_change_needs_matching_confirmation(self, as_client, fake_api):
        fake_api.on("GET", "/auth/me", {})
        r = as_client.post("/profile", data={
            "full_name": "Dana", "new_password": "newsecret1", "confirm_password": "different1",
        })
        assert r.status_code == 200
        assert b"New passwords do not match" in r.data
        assert fake_api.calls_to("PUT", "/auth/me") == []

    def test_agent_profile_shows_stats(self, client, fake_api):
        login_as(client, "agent")
        fake_api.on("GET", "/auth/me", {})
        fake_api.on("GET", "/projects", [
            {"globalStatus": "In Progress", "clientId": 1},
            {"globalStatus": "Delivered", "clientId": 2},
        ])
        r = client.get("/profile")
        assert b"Clients served" in r.data
