"""Tests for the generic REST client."""

import pytest

from ccloud.clients.api_error import ApiError
from ccloud.clients.rest import ApiContext, RestClient
from ccloud.core.exceptions import PaginationError

BASE_URL = "https://api.confluent.cloud"


@pytest.fixture
def context():
    """Basic-auth call context."""
    return ApiContext(headers={"x-call": "1"}, auth=("key", "secret"))


class TestRestClient:
    """Tests for RestClient."""

    def test_url(self, mock_session):
        """Test paths are joined to the base URL."""
        client = RestClient(f"{BASE_URL}/", mock_session)

        assert client.url("/iam/v2/users") == f"{BASE_URL}/iam/v2/users"
        assert client.url("iam/v2/users") == f"{BASE_URL}/iam/v2/users"
        assert client.url("https://other.example.com/x") == "https://other.example.com/x"

    def test_request_merges_headers_and_auth(self, mock_session, context, response_factory):
        """Test default and call headers are merged with auth."""
        mock_session.request.return_value = response_factory(200, {"id": "sa-1"})
        client = RestClient(BASE_URL, mock_session, {"x-default": "d"})

        body, response = client.request(
            "POST", "/iam/v2/service-accounts", context, params={"a": 1}, json={"display_name": "x"}
        )

        assert body == {"id": "sa-1"}
        assert response.status_code == 200
        mock_session.request.assert_called_once_with(
            "POST",
            f"{BASE_URL}/iam/v2/service-accounts",
            headers={"x-default": "d", "x-call": "1"},
            auth=("key", "secret"),
            params={"a": 1},
            json={"display_name": "x"},
        )

    def test_empty_body(self, mock_session, context, response_factory):
        """Test an empty body decodes to None."""
        mock_session.request.return_value = response_factory(204)
        client = RestClient(BASE_URL, mock_session)

        body, _ = client.request("DELETE", "/x", context)

        assert body is None

    def test_text_body(self, mock_session, context, response_factory):
        """Test a non-JSON body is returned as text."""
        mock_session.request.return_value = response_factory(200, content=b"plain")
        client = RestClient(BASE_URL, mock_session)

        body, _ = client.get("/x", context)

        assert body == "plain"

    def test_error_status_raises_api_error(self, mock_session, context, response_factory):
        """Test non-2xx responses raise ApiError with the parsed detail."""
        mock_session.request.return_value = response_factory(
            404, {"errors": [{"detail": "not found"}]}, reason="Not Found"
        )
        client = RestClient(BASE_URL, mock_session)

        with pytest.raises(ApiError) as exc_info:
            client.get("/iam/v2/users/u-1", context)

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail() == "not found"


class TestPagination:
    """Tests for paged listings."""

    def test_list_all_follows_next(self, mock_session, context, response_factory):
        """Test every page is fetched with its page token."""
        mock_session.request.side_effect = [
            response_factory(
                200,
                {
                    "data": [{"id": "sa-1"}, {"id": "sa-2"}],
                    "metadata": {"next": f"{BASE_URL}/iam/v2/service-accounts?page_token=p2"},
                },
            ),
            response_factory(200, {"data": [{"id": "sa-3"}], "metadata": {"next": ""}}),
        ]
        client = RestClient(BASE_URL, mock_session)

        items = client.list_all("/iam/v2/service-accounts", context, page_size=2)

        assert [item["id"] for item in items] == ["sa-1", "sa-2", "sa-3"]
        first, second = mock_session.request.call_args_list
        assert first.kwargs["params"] == {"page_size": 2}
        assert second.kwargs["params"] == {"page_size": 2, "page_token": "p2"}

    def test_missing_metadata_is_last_page(self, mock_session, context, response_factory):
        """Test a body without metadata ends the listing."""
        mock_session.request.return_value = response_factory(200, {"data": [{"id": "env-1"}]})
        client = RestClient(BASE_URL, mock_session)

        assert client.list_all("/org/v2/environments", context) == [{"id": "env-1"}]
        assert mock_session.request.call_args.kwargs["params"] == {"page_size": 99}

    def test_bad_next_url(self, mock_session, context, response_factory):
        """Test a next URL without token raises PaginationError."""
        mock_session.request.return_value = response_factory(
            200, {"data": [], "metadata": {"next": f"{BASE_URL}/iam/v2/users?page_size=99"}}
        )
        client = RestClient(BASE_URL, mock_session)

        with pytest.raises(PaginationError):
            client.list_all("/iam/v2/users", context)

    def test_fetch_page_extra_params(self, mock_session, context, response_factory):
        """Test extra query parameters are sent with every page."""
        mock_session.request.return_value = response_factory(200, {"data": []})
        client = RestClient(BASE_URL, mock_session)

        page = client.fetch_page("/x", context, None, params={"environment": "env-1"})

        assert page.is_last
        assert mock_session.request.call_args.kwargs["params"] == {
            "page_size": 99,
            "environment": "env-1",
        }


def test_api_context_with_headers():
    """Test with_headers returns a merged copy."""
    context = ApiContext(headers={"a": "1"}, auth=("k", "s"))

    merged = context.with_headers({"b": "2"})

    assert merged.headers == {"a": "1", "b": "2"}
    assert merged.auth == ("k", "s")
    assert context.headers == {"a": "1"}
