"""Tests for the JSON API blueprints.

Covers:
- Leads, messages and products endpoints (status codes, payload shape)
- Error mapping: validation -> 422, not found -> 404, bad body -> 400
- Dashboard overview and cache clearing
- Health check, JSON error pages and security headers
"""

from tests.conftest import lead_payload, product_payload


class TestLeadsApi:

    def test_list(self, client, seed_data):
        resp = client.get("/api/leads?page=1&limit=10")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["ok"] is True
        assert body["count"] == 2
        assert body["page"] == 1
        assert body["limit"] == 10
        assert len(body["data"]) == 2

    def test_create(self, client, seed_data):
        resp = client.post("/api/leads", json=lead_payload(
            name="Hooli", email="a@hooli.com", instagram="@hooli", website=None,
        ))
        assert resp.status_code == 201
        assert resp.get_json()["data"]["name"] == "Hooli"

    def test_create_duplicate_is_422(self, client, seed_data):
        resp = client.post("/api/leads", json=lead_payload(instagram="@other", website=None))
        assert resp.status_code == 422
        body = resp.get_json()
        assert body["ok"] is False
        assert body["error"] == "A lead with this email already exists: Acme Bakery"

    def test_duplicate_naming_a_not_found_lead_is_422(self, client):
        resp = client.post("/api/leads", json=lead_payload(name="Not Found Records"))
        assert resp.status_code == 201

        resp = client.post("/api/leads", json=lead_payload(
            name="Copycat", instagram="@copycat", website=None,
        ))
        assert resp.status_code == 422
        assert resp.get_json() == {
            "ok": False,
            "error": "A lead with this email already exists: Not Found Records",
        }

    def test_create_requires_json_object(self, client):
        resp = client.post("/api/leads", data="not json", content_type="text/plain")
        assert resp.status_code == 400
        assert resp.get_json() == {"ok": False, "error": "Invalid request."}

    def test_get_missing_is_404(self, client):
        resp = client.get("/api/leads/999")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Lead 999 not found."

    def test_update_and_delete(self, client, seed_data):
        lead_id = seed_data["acme_id"]
        resp = client.patch(f"/api/leads/{lead_id}", json={"status": "busy"})
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "busy"

        resp = client.delete(f"/api/leads/{lead_id}")
        assert resp.status_code == 200
        assert resp.get_json() == {"ok": True}
        assert client.get("/api/leads").get_json()["count"] == 1

    def test_search_requires_term(self, client):
        resp = client.get("/api/leads/search?q=%20")
        assert resp.status_code == 400

    def test_search(self, client, seed_data):
        body = client.get("/api/leads/search?q=globex").get_json()
        assert [l["name"] for l in body["data"]] == ["Globex Garage"]

    def test_by_status_invalid(self, client):
        resp = client.get("/api/leads/status/hot")
        assert resp.status_code == 400

    def test_stats(self, client, seed_data):
        body = client.get("/api/leads/stats").get_json()
        assert body["ok"] is True
        assert body["data"]["total"] == 2
        assert "error" not in body["data"]

    def test_duplicates(self, client, seed_data):
        body = client.get(
            "/api/leads/duplicates?email=hello@globex.com"
        ).get_json()
        assert body["data"]["is_duplicate"] is True
        assert body["data"]["field"] == "email"

        body = client.get(
            f"/api/leads/duplicates?email=hello@globex.com&exclude_id={seed_data['globex_id']}"
        ).get_json()
        assert body["data"]["is_duplicate"] is False


class TestMessagesApi:

    def _create(self, client, lead_id, **overrides):
        payload = {
            "lead_id": lead_id,
            "body": "Hi, following up on our chat.",
            "channel": "whatsapp",
            "kind": "follow_up",
        }
        payload.update(overrides)
        return client.post("/api/messages", json=payload)

    def test_create_and_list_for_lead(self, client, seed_data):
        resp = self._create(client, seed_data["acme_id"])
        assert resp.status_code == 201

        body = client.get(f"/api/messages/lead/{seed_data['acme_id']}").get_json()
        assert body["count"] == 1
        assert body["data"][0]["channel"] == "whatsapp"

    def test_create_for_missing_lead_is_404(self, client):
        resp = self._create(client, 999)
        assert resp.status_code == 404

    def test_create_invalid_is_422(self, client, seed_data):
        resp = self._create(client, seed_data["acme_id"], kind="cold_call")
        assert resp.status_code == 422

    def test_grouped_and_stats(self, client, seed_data):
        self._create(client, seed_data["acme_id"])
        self._create(client, seed_data["globex_id"], direction="received")

        grouped = client.get("/api/messages/grouped").get_json()
        assert len(grouped["data"]) == 2

        stats = client.get("/api/messages/stats").get_json()
        assert stats["data"]["total"] == 2
        assert stats["data"]["received"] == 1

    def test_all_messages(self, client, seed_data):
        self._create(client, seed_data["acme_id"])
        body = client.get("/api/messages").get_json()
        assert body["data"][0]["lead"]["name"] == "Acme Bakery"

    def test_update_and_delete(self, client, seed_data):
        message_id = self._create(client, seed_data["acme_id"]).get_json()["data"]["id"]

        resp = client.patch(f"/api/messages/{message_id}", json={"body": "Edited"})
        assert resp.get_json()["data"]["body"] == "Edited"

        assert client.delete(f"/api/messages/{message_id}").status_code == 200
        assert client.get(f"/api/messages/{message_id}").status_code == 404


class TestProductsApi:

    def test_catalog(self, client, seed_data):
        body = client.get("/api/products").get_json()
        assert body["ok"] is True
        assert len(body["data"]) == 1
        assert body["stats"] == {"total": 1, "ativos": 1, "inativos": 0}

    def test_create_short_text_is_422(self, client):
        resp = client.post("/api/products", json=product_payload(sales_prompt="Short"))
        assert resp.status_code == 422
        assert "Sales prompt must be at least 100" in resp.get_json()["error"]

    def test_toggle(self, client, seed_data):
        product_id = seed_data["product_id"]
        resp = client.post(f"/api/products/{product_id}/toggle")
        assert resp.get_json()["data"]["active"] is False
        assert client.get("/api/products").get_json()["stats"]["inativos"] == 1

    def test_missing_is_404(self, client):
        assert client.get("/api/products/55").status_code == 404
        assert client.post("/api/products/55/toggle").status_code == 404


class TestDashboardApi:

    def test_overview(self, client, seed_data):
        body = client.get("/api/dashboard").get_json()
        assert body["ok"] is True
        assert body["errors"] == {}
        assert body["data"]["leads"]["total"] == 2
        assert body["data"]["messages"]["total"] == 0
        assert body["data"]["products"]["ativos"] == 1

    def test_cache_clear(self, client, app, seed_data):
        client.get("/api/leads")
        services = app.extensions["leaddesk"]
        assert len(services.leads.cache) > 0

        resp = client.post("/api/dashboard/cache/clear")
        assert resp.get_json() == {"ok": True}
        assert len(services.leads.cache) == 0


class TestAppShell:

    def test_health(self, client):
        assert client.get("/health").get_json() == {"ok": True}

    def test_unknown_route_is_json_404(self, client):
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert resp.get_json() == {"ok": False, "error": "Not found."}

    def test_wrong_method_is_json_405(self, client):
        resp = client.delete("/api/leads")
        assert resp.status_code == 405
        assert resp.get_json()["ok"] is False

    def test_security_headers(self, client):
        resp = client.get("/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert "default-src 'none'" in resp.headers["Content-Security-Policy"]
