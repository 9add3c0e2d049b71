"""
Integration tests for the viewer shell and OAuth callback pages.
"""


class TestViewerPage:
    """Tests for GET /viewer/{file_id}."""

    def test_renders_viewer(self, client, token_store):
        token = token_store.mint("101", "contract.pdf")

        response = client.get("/viewer/101", params={"token": token, "filename": "contract.pdf"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        body = response.text
        assert "<title>Nutrient Viewer - contract.pdf</title>" in body
        assert "https://cdn.cloud.pspdfkit.com/pspdfkit-web@1.10.0/nutrient-viewer.js" in body
        assert f"/api/file/101?token={token}" in body
        assert f"/api/hubspot/upload?token={token}" in body
        assert "Save to HubSpot" in body
        assert response.headers["referrer-policy"] == "no-referrer"

    def test_filename_defaults_to_token_record(self, client, token_store):
        token = token_store.mint("101", "contract.pdf")

        response = client.get("/viewer/101", params={"token": token})

        assert "<h1>contract.pdf</h1>" in response.text

    def test_filename_is_escaped(self, client, token_store):
        token = token_store.mint("101")
        hostile = "</script><script>alert(1)</script>"

        response = client.get("/viewer/101", params={"token": token, "filename": hostile})

        assert response.status_code == 200
        assert "<script>alert(1)</script>" not in response.text
        assert "&lt;/script&gt;" in response.text

    def test_missing_token_page(self, client):
        response = client.get("/viewer/101")

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("text/html")
        assert "Missing authentication token" in response.text

    def test_expired_token_page(self, client, token_store, clock):
        token = token_store.mint("101")
        clock.advance(minutes=15)

        response = client.get("/viewer/101", params={"token": token})

        assert response.status_code == 401
        assert "Invalid or expired token. Tokens are valid for 15 minutes." in response.text
        assert token not in response.text

    def test_token_for_other_file_page(self, client, token_store):
        token = token_store.mint("101")

        response = client.get("/viewer/102", params={"token": token})

        assert response.status_code == 401
        assert "Invalid or expired token" in response.text


class TestOAuthCallback:
    """Tests for GET /oauth-callback."""

    def test_success(self, client):
        response = client.get("/oauth-callback", params={"code": "abc123"})

        assert response.status_code == 200
        assert "Installation Successful!" in response.text

    def test_missing_code(self, client):
        response = client.get("/oauth-callback")

        assert response.status_code == 400
        assert "Invalid Request" in response.text

    def test_error_is_escaped(self, client):
        response = client.get(
            "/oauth-callback",
            params={"error": "access_denied", "error_description": "<b>denied</b>"},
        )

        assert response.status_code == 400
        assert "OAuth Error" in response.text
        assert "access_denied" in response.text
        assert "&lt;b&gt;denied&lt;/b&gt;" in response.text
        assert "<b>denied</b>" not in response.text

    def test_error_without_description(self, client):
        response = client.get("/oauth-callback", params={"error": "access_denied"})

        assert response.status_code == 400
        assert "Details:" not in response.text
