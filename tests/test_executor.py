"""Tests for the request executor against a local HTTP server."""

import asyncio
import io
import json
import time

import httpx
import pytest
from pytest_httpserver import HTTPServer
from werkzeug import Request, Response

from awaithttp.config import Config
from awaithttp.exceptions import HttpStatusError, TransportError
from awaithttp.http.client import create_client
from awaithttp.http.cookies import CookieStore
from awaithttp.http.headers import headers


def echo(request: Request) -> Response:
    """Return what the server received as JSON."""
    payload = {
        "method": request.method,
        "content_type": request.headers.get("Content-Type"),
        "content_length": request.headers.get("Content-Length"),
        "body": request.get_data(as_text=True),
        "cookie": request.headers.get("Cookie"),
        "user_agent": request.headers.get("User-Agent"),
        "accept": request.headers.getlist("Accept"),
    }
    return Response(json.dumps(payload), content_type="application/json")


def slow(request: Request) -> Response:
    time.sleep(0.5)
    return Response("late")


class FailingStream:
    """Upload source that breaks on first read."""

    def read(self, size=-1):
        raise ValueError("stream closed")


@pytest.fixture
def client(tmp_path):
    client = create_client(Config(cookie_file=str(tmp_path / "cookies.json"), record_stack=False))
    yield client
    client.close()


class TestRequestExecutor:
    """Test verb helpers end to end."""

    def setup_method(self):
        """Set up test HTTP server."""
        self.server = HTTPServer(host="127.0.0.1", port=0)
        self.server.expect_request("/text").respond_with_data("hello")
        self.server.expect_request("/missing").respond_with_data("not here", status=404)
        self.server.expect_request("/broken", method="POST").respond_with_data("server exploded", status=500)
        self.server.expect_request("/echo").respond_with_handler(echo)
        self.server.expect_request("/slow").respond_with_handler(slow)
        self.server.expect_request("/item", method="DELETE").respond_with_data("deleted")
        self.server.expect_request("/meta", method="HEAD").respond_with_data("", headers={"X-Meta": "yes"})
        self.server.expect_request("/meta-error", method="HEAD").respond_with_data("", status=500)
        self.server.expect_request("/login").respond_with_data(
            "ok", headers=[("Set-Cookie", "sessionid=abc123; Path=/; HttpOnly")]
        )
        self.server.start()
        self.base_url = f"http://127.0.0.1:{self.server.port}"

    def teardown_method(self):
        """Clean up test HTTP server."""
        self.server.clear()
        self.server.stop()

    @pytest.mark.asyncio
    async def test_get_code(self, client):
        assert await client.get_code(f"{self.base_url}/text") == (200, "hello")
        assert await client.get_code(f"{self.base_url}/missing") == (404, "not here")

    @pytest.mark.asyncio
    async def test_get(self, client):
        assert await client.get(f"{self.base_url}/text") == "hello"

    @pytest.mark.asyncio
    async def test_get_404_raises_with_body_and_closes(self, client):
        with pytest.raises(HttpStatusError) as exc_info:
            await client.get(f"{self.base_url}/missing")
        error = exc_info.value
        assert error.status_code == 404
        assert error.body == "not here"
        assert error.url.endswith("/missing")
        assert error.response.is_closed

    @pytest.mark.asyncio
    async def test_get_response_is_left_open(self, client):
        response = await client.get_response(f"{self.base_url}/text")
        assert not response.is_closed
        assert response.content_length == 5
        assert await response.read() == b"hello"
        response.close()
        assert response.is_closed

    @pytest.mark.asyncio
    async def test_read_bytes(self, client):
        assert await client.read_bytes(f"{self.base_url}/text") == b"hello"

    @pytest.mark.asyncio
    async def test_headers_are_sent(self, client):
        body = await client.get(f"{self.base_url}/echo", headers("Accept", "text/html", "Accept", "application/json"))
        payload = json.loads(body)
        assert payload["accept"] == ["text/html", "application/json"]
        assert payload["user_agent"] == client.config.user_agent

    @pytest.mark.asyncio
    async def test_mapping_headers_are_stringified(self, client):
        payload = json.loads(await client.get(f"{self.base_url}/echo", {"Accept": 42}))
        assert payload["accept"] == ["42"]

    @pytest.mark.asyncio
    async def test_post_form(self, client):
        payload = json.loads(await client.post(f"{self.base_url}/echo", form={"a": 1, "b": "two words"}))
        assert payload["method"] == "POST"
        assert payload["content_type"] == "application/x-www-form-urlencoded"
        assert payload["body"] == "a=1&b=two+words"

    @pytest.mark.asyncio
    async def test_post_raw_body_with_media_type(self, client):
        status, body = await client.post_code(
            f"{self.base_url}/echo", content='{"x": 1}', media_type="application/json"
        )
        payload = json.loads(body)
        assert status == 200
        assert payload["content_type"] == "application/json"
        assert payload["body"] == '{"x": 1}'

    @pytest.mark.asyncio
    async def test_post_stream_with_declared_length(self, client):
        stream = io.BytesIO(b"streamed payload")
        status, body = await client.post_code(
            f"{self.base_url}/echo", stream=stream, media_type="text/plain"
        )
        payload = json.loads(body)
        assert status == 200
        assert payload["content_type"] == "text/plain"
        assert payload["content_length"] == "16"
        assert payload["body"] == "streamed payload"

    @pytest.mark.asyncio
    async def test_failing_upload_stream_raises_transport_error(self, client):
        with pytest.raises(TransportError) as exc_info:
            await asyncio.wait_for(
                client.post_code(f"{self.base_url}/echo", stream=FailingStream()), timeout=5
            )
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_post_rejects_two_bodies(self, client):
        with pytest.raises(ValueError):
            await client.post_code(f"{self.base_url}/echo", form={"a": 1}, content="x")

    @pytest.mark.asyncio
    async def test_post_error_raises(self, client):
        with pytest.raises(HttpStatusError) as exc_info:
            await client.post(f"{self.base_url}/broken", content="x")
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "server exploded"

    @pytest.mark.asyncio
    async def test_post_code_returns_error_status(self, client):
        assert await client.post_code(f"{self.base_url}/broken") == (500, "server exploded")

    @pytest.mark.asyncio
    async def test_delete_code(self, client):
        assert await client.delete_code(f"{self.base_url}/item") == (200, "deleted")

    @pytest.mark.asyncio
    async def test_head_returns_headers(self, client):
        response_headers = await client.head(f"{self.base_url}/meta")
        assert response_headers["x-meta"] == "yes"

    @pytest.mark.asyncio
    async def test_head_error_raises(self, client):
        with pytest.raises(HttpStatusError) as exc_info:
            await client.head(f"{self.base_url}/meta-error")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_connection_refused_is_transport_error(self, client):
        stopped = HTTPServer(host="127.0.0.1", port=0)
        stopped.start()
        url = stopped.url_for("/text")
        stopped.stop()
        with pytest.raises(TransportError) as exc_info:
            await client.get(url)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout_cancels_request(self, client):
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(client.get(f"{self.base_url}/slow"), timeout=0.1)
        # The client stays usable
        assert await client.get(f"{self.base_url}/text") == "hello"

    @pytest.mark.asyncio
    async def test_concurrent_requests(self, client):
        results = await asyncio.gather(*(client.get(f"{self.base_url}/text") for _ in range(10)))
        assert results == ["hello"] * 10

    @pytest.mark.asyncio
    async def test_cookies_are_stored_and_sent(self, client):
        await client.get(f"{self.base_url}/login")
        assert [record.name for record in client.cookie_store.get("http://127.0.0.1")] == ["sessionid"]

        payload = json.loads(await client.get(f"{self.base_url}/echo"))
        assert payload["cookie"] == "sessionid=abc123"

    @pytest.mark.asyncio
    async def test_cookies_survive_restart_only_when_saved(self, tmp_path):
        cookie_file = tmp_path / "cookies.json"
        config = Config(cookie_file=str(cookie_file), record_stack=False)

        async with create_client(config) as first:
            await first.get(f"{self.base_url}/login")
        assert json.loads(cookie_file.read_text()) == []

        async with create_client(config) as second:
            await second.get(f"{self.base_url}/login")
            assert second.save_cookies()

        async with create_client(config) as third:
            payload = json.loads(await third.get(f"{self.base_url}/echo"))
        assert payload["cookie"] == "sessionid=abc123"

    @pytest.mark.asyncio
    async def test_explicit_cookie_store(self, tmp_path):
        store = CookieStore.open(tmp_path / "jar.json")
        async with create_client(Config(record_stack=False), cookie_store=store) as client:
            await client.get(f"{self.base_url}/login")
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_no_cookie_file_means_no_store(self):
        async with create_client(Config(record_stack=False)) as client:
            assert client.cookie_store is None
            assert not client.save_cookies()
            assert await client.get(f"{self.base_url}/text") == "hello"

    @pytest.mark.asyncio
    async def test_closed_client_rejects_requests(self, client):
        client.close()
        assert client.is_closed
        with pytest.raises(TransportError):
            await client.get(f"{self.base_url}/text")
