"""
Unit tests for catalog_admin.api.
"""
import httpx
import pytest

from catalog_admin.api import ApiClient, ApiError, unwrap_response


def _client(handler, token="abc"):
    return ApiClient("http://catalog.test/api", token=token, transport=httpx.MockTransport(handler))


class TestUnwrapResponse:
    """Tests for envelope handling."""

    def test_returns_data(self):
        response = httpx.Response(200, json={"status": 200, "data": [1, 2], "message": "OK"})

        assert unwrap_response(response) == [1, 2]

    def test_envelope_status_is_checked(self):
        response = httpx.Response(200, json={"status": 400, "data": None, "message": "Name taken"})

        with pytest.raises(ApiError) as excinfo:
            unwrap_response(response)

        assert excinfo.value.status == 400
        assert excinfo.value.message == "Name taken"
        assert excinfo.value.is_validation_error

    def test_http_status_is_checked(self):
        response = httpx.Response(404, json={"status": 404, "data": None})

        with pytest.raises(ApiError) as excinfo:
            unwrap_response(response)

        assert excinfo.value.is_not_found
        assert excinfo.value.message == "API request failed"

    def test_non_200_success_code_is_a_failure(self):
        response = httpx.Response(201, json={"status": 201, "data": {"id": "1"}})

        with pytest.raises(ApiError) as excinfo:
            unwrap_response(response)

        assert excinfo.value.status == 201

    def test_error_key_is_used_as_message(self):
        response = httpx.Response(500, json={"error": "Database down"})

        with pytest.raises(ApiError, match="Database down"):
            unwrap_response(response)

    def test_non_json_error_uses_fallback(self):
        response = httpx.Response(502, text="<html>Bad gateway</html>")

        with pytest.raises(ApiError) as excinfo:
            unwrap_response(response)

        assert excinfo.value.status == 502
        assert excinfo.value.message == "API request failed"

    def test_body_without_envelope_is_rejected(self):
        response = httpx.Response(200, json=[{"id": "1"}])

        with pytest.raises(ApiError) as excinfo:
            unwrap_response(response)

        assert excinfo.value.status == 500
        assert excinfo.value.message == "Invalid API response format"


class TestApiClient:
    """Tests for ApiClient requests."""

    def test_requests_carry_token_and_base_path(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"status": 200, "data": {"id": "7", "name": "Tea"}})

        category = _client(handler).get_category("7")

        assert seen == {"path": "/api/category/7", "auth": "Bearer abc"}
        assert category.name == "Tea"

    def test_no_token_no_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"status": 200, "data": []})

        assert _client(handler, token=None).list_categories() == []
        assert seen["auth"] is None

    @pytest.mark.parametrize("cascade, expected", [(True, "true"), (False, "false")])
    def test_delete_category_sends_cascade(self, cascade, expected):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["cascade"] = request.url.params.get("cascade")
            return httpx.Response(200, json={"status": 200, "data": None})

        _client(handler).delete_category("3", cascade=cascade)

        assert seen == {"method": "DELETE", "cascade": expected}

    def test_list_skips_non_record_items(self):
        def handler(request):
            return httpx.Response(200, json={"status": 200, "data": [{"id": "1", "name": "A"}, "junk"]})

        assert [category.id for category in _client(handler).list_categories()] == ["1"]

    def test_login_returns_token_and_user(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"status": 200, "data": {"token": "t1", "user": {"id": "1", "role": "admin"}}},
            )

        result = _client(handler, token=None).login("admin", "pw")

        assert result == {"token": "t1", "user": {"id": "1", "role": "admin"}}

    def test_login_without_token_is_invalid(self):
        def handler(request):
            return httpx.Response(200, json={"status": 200, "data": {"user": {"id": "1"}}})

        with pytest.raises(ApiError, match="Invalid API response format"):
            _client(handler, token=None).login("admin", "pw")

    def test_connection_failure_maps_to_503(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ApiError) as excinfo:
            _client(handler).list_products()

        assert excinfo.value.status == 503

    def test_timeout_maps_to_504(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(ApiError) as excinfo:
            _client(handler).list_contacts()

        assert excinfo.value.status == 504

    def test_context_manager_closes(self):
        def handler(request):
            return httpx.Response(200, json={"status": 200, "data": {"id": "p", "company_name": "Co"}})

        with _client(handler) as client:
            assert client.get_profile().company_name == "Co"
        assert client._client.is_closed
