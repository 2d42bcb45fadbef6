"""
Unit tests for the route handlers.
"""

import os
from pathlib import Path

import pytest

from minihttpd.handlers import FileHandler, echo, root, user_agent
from minihttpd.http.request import HTTPRequest
from minihttpd.http.status_codes import HTTPStatus


def files_request(method: str, name: str, body: bytes = None) -> HTTPRequest:
    return HTTPRequest(
        method=method,
        path=f"/files/{name}",
        path_params={"name": name},
        body=body,
    )


class TestBasicHandlers:
    """Tests for /, /echo and /user-agent."""

    def test_root(self):
        response = root(HTTPRequest(method="GET", path="/"))

        assert response.to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_echo(self):
        request = HTTPRequest(method="GET", path="/echo/abc", path_params={"text": "abc"})
        response = echo(request)

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "text/plain"
        assert response.body == b"abc"

    def test_echo_keeps_percent_escapes(self):
        request = HTTPRequest(method="GET", path="/echo/a%20b", path_params={"text": "a%20b"})

        assert echo(request).body == b"a%20b"

    def test_user_agent(self):
        request = HTTPRequest(
            method="GET", path="/user-agent", headers={"user-agent": "foobar/1.2.3"}
        )
        response = user_agent(request)

        assert response.status == HTTPStatus.OK
        assert response.body == b"foobar/1.2.3"
        assert response.headers["Content-Length"] == "12"

    def test_user_agent_missing(self):
        response = user_agent(HTTPRequest(method="GET", path="/user-agent"))

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.body == b""


class TestFileHandlerGet:
    """Tests for reading files."""

    def test_existing_file(self, files_dir: Path):
        (files_dir / "hello.txt").write_bytes(b"Hello, World!")
        response = FileHandler(str(files_dir)).get(files_request("GET", "hello.txt"))

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "application/octet-stream"
        assert response.headers["Content-Length"] == "13"
        assert response.body == b"Hello, World!"

    def test_empty_file(self, files_dir: Path):
        (files_dir / "empty").write_bytes(b"")
        response = FileHandler(str(files_dir)).get(files_request("GET", "empty"))

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Length"] == "0"

    def test_subdirectory_file(self, files_dir: Path):
        (files_dir / "sub").mkdir()
        (files_dir / "sub" / "a.bin").write_bytes(b"\x00\xff")
        response = FileHandler(str(files_dir)).get(files_request("GET", "sub/a.bin"))

        assert response.body == b"\x00\xff"

    def test_missing_file(self, files_dir: Path):
        response = FileHandler(str(files_dir)).get(files_request("GET", "nope"))

        assert response.status == HTTPStatus.NOT_FOUND

    def test_directory_is_not_found(self, files_dir: Path):
        (files_dir / "sub").mkdir()
        response = FileHandler(str(files_dir)).get(files_request("GET", "sub"))

        assert response.status == HTTPStatus.NOT_FOUND

    @pytest.mark.parametrize("name", ["../secret", "a/../b", "..", "x..y"])
    def test_dot_dot_is_bad_request(self, files_dir: Path, name: str):
        response = FileHandler(str(files_dir)).get(files_request("GET", name))

        assert response.status == HTTPStatus.BAD_REQUEST

    def test_dot_dot_checked_before_directory(self):
        """Traversal is a 400 even when file routes are disabled."""
        response = FileHandler(None).get(files_request("GET", "../x"))

        assert response.status == HTTPStatus.BAD_REQUEST

    def test_no_directory(self):
        response = FileHandler(None).get(files_request("GET", "hello.txt"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_absolute_name_is_not_found(self, files_dir: Path, tmp_path: Path):
        outside = tmp_path / "outside.txt"
        outside.write_bytes(b"secret")
        response = FileHandler(str(files_dir)).get(files_request("GET", str(outside)))

        assert response.status == HTTPStatus.NOT_FOUND

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
    def test_symlink_escape_is_not_found(self, files_dir: Path, tmp_path: Path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "passwd").write_bytes(b"secret")
        (files_dir / "link").symlink_to(outside, target_is_directory=True)

        response = FileHandler(str(files_dir)).get(files_request("GET", "link/passwd"))

        assert response.status == HTTPStatus.NOT_FOUND

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
    def test_symlink_inside_base_is_followed(self, files_dir: Path):
        (files_dir / "real.txt").write_bytes(b"data")
        (files_dir / "alias.txt").symlink_to(files_dir / "real.txt")

        response = FileHandler(str(files_dir)).get(files_request("GET", "alias.txt"))

        assert response.body == b"data"


class TestFileHandlerPost:
    """Tests for writing files."""

    def test_creates_file(self, files_dir: Path):
        request = files_request("POST", "new.txt", body=b"payload")
        response = FileHandler(str(files_dir)).post(request)

        assert response.to_bytes() == b"HTTP/1.1 201 Created\r\n\r\n"
        assert (files_dir / "new.txt").read_bytes() == b"payload"

    def test_truncates_existing_file(self, files_dir: Path):
        (files_dir / "f").write_bytes(b"a much longer original")
        FileHandler(str(files_dir)).post(files_request("POST", "f", body=b"short"))

        assert (files_dir / "f").read_bytes() == b"short"

    def test_empty_body(self, files_dir: Path):
        response = FileHandler(str(files_dir)).post(files_request("POST", "empty", body=b""))

        assert response.status == HTTPStatus.CREATED
        assert (files_dir / "empty").read_bytes() == b""

    def test_missing_parent_directory(self, files_dir: Path):
        response = FileHandler(str(files_dir)).post(
            files_request("POST", "no/such/dir.txt", body=b"x")
        )

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_dot_dot_is_bad_request(self, files_dir: Path):
        response = FileHandler(str(files_dir)).post(
            files_request("POST", "../escape.txt", body=b"x")
        )

        assert response.status == HTTPStatus.BAD_REQUEST
        assert not (files_dir.parent / "escape.txt").exists()

    def test_no_directory(self):
        response = FileHandler(None).post(files_request("POST", "a", body=b"x"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_absolute_name_is_refused(self, files_dir: Path, tmp_path: Path):
        target = tmp_path / "absolute.txt"
        response = FileHandler(str(files_dir)).post(
            files_request("POST", str(target), body=b"x")
        )

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert not target.exists()

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
    def test_symlink_escape_is_refused(self, files_dir: Path, tmp_path: Path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (files_dir / "link").symlink_to(outside, target_is_directory=True)

        response = FileHandler(str(files_dir)).post(
            files_request("POST", "link/planted", body=b"x")
        )

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert not (outside / "planted").exists()

    def test_body_read_before_guard(self):
        """The body is consumed even when the request is rejected."""
        consumed = []

        def reader(size):
            consumed.append(size)
            return b"x" * size

        request = HTTPRequest(
            method="POST",
            path="/files/../x",
            headers={"content-length": "4"},
            path_params={"name": "../x"},
            _body_reader=reader,
        )
        response = FileHandler(None).post(request)

        assert response.status == HTTPStatus.BAD_REQUEST
        assert consumed == [4]
