"""Tests for wali.http.forms: url-encoded and multipart parsing."""

import sys

import pytest

from wali.errors import ConfigurationError, HTTPError
from wali.http.forms import FormData, UploadFile, parse_form_data

BOUNDARY = "form-boundary"
MULTIPART = f"multipart/form-data; boundary={BOUNDARY}"


def _part(name: str, value: bytes, filename: str | None = None) -> bytes:
    disposition = f'form-data; name="{name}"'
    head = f"--{BOUNDARY}\r\nContent-Disposition: {disposition}"
    if filename is not None:
        head += f'; filename="{filename}"\r\nContent-Type: image/png'
    return head.encode() + b"\r\n\r\n" + value + b"\r\n"


def _close() -> bytes:
    return f"--{BOUNDARY}--\r\n".encode()


class TestFormData:
    def test_first_value_and_list(self) -> None:
        form = FormData({"tag": ["a", "b"]})
        assert form["tag"] == "a"
        assert form.get_list("tag") == ["a", "b"]
        assert form.get("missing", "x") == "x"

    def test_files_kept_apart(self) -> None:
        upload = UploadFile("avatar", "me.png", "image/png", b"png")
        form = FormData({"name": ["ada"]}, {"avatar": upload})
        assert form.to_dict() == {"name": "ada"}
        assert "avatar" not in form
        assert form.files["avatar"] is upload


class TestUploadFile:
    def test_size_and_read(self) -> None:
        upload = UploadFile("doc", "a.txt", "text/plain", b"hello")
        assert upload.size == 5
        assert upload.read() == b"hello"

    def test_save(self, tmp_path) -> None:
        upload = UploadFile("doc", "a.txt", "text/plain", b"hello")
        target = upload.save(tmp_path / "copy.txt")
        assert target.read_bytes() == b"hello"

    def test_repr_omits_content(self) -> None:
        upload = UploadFile("doc", "a.txt", "text/plain", b"secret")
        assert "secret" not in repr(upload)


class TestParseUrlEncoded:
    def test_basic(self) -> None:
        form = parse_form_data(b"a=1&b=%C3%A9", "application/x-www-form-urlencoded")
        assert form.to_dict() == {"a": "1", "b": "é"}

    def test_charset_parameter_ignored(self) -> None:
        form = parse_form_data(b"a=1", "application/x-www-form-urlencoded; charset=UTF-8")
        assert form["a"] == "1"

    def test_other_types_are_empty(self) -> None:
        assert len(parse_form_data(b"a=1", "text/plain")) == 0
        assert len(parse_form_data(b"a=1", None)) == 0


class TestParseMultipart:
    def test_fields_and_files(self) -> None:
        pytest.importorskip("python_multipart")
        body = (
            _part("title", b"Holiday")
            + _part("tag", b"sea")
            + _part("tag", b"sun")
            + _part("photo", b"\x89PNG", filename="beach.png")
            + _close()
        )
        form = parse_form_data(body, MULTIPART)
        assert form["title"] == "Holiday"
        assert form.get_list("tag") == ["sea", "sun"]
        photo = form.files["photo"]
        assert photo.filename == "beach.png"
        assert photo.content_type == "image/png"
        assert photo.read() == b"\x89PNG"

    def test_missing_boundary_is_bad_request(self) -> None:
        pytest.importorskip("python_multipart")
        with pytest.raises(HTTPError) as info:
            parse_form_data(b"", "multipart/form-data")
        assert info.value.status == 400

    def test_missing_package_raises_configuration_error(self, monkeypatch) -> None:
        monkeypatch.setitem(sys.modules, "python_multipart", None)
        monkeypatch.setitem(sys.modules, "python_multipart.multipart", None)
        monkeypatch.setitem(sys.modules, "python_multipart.exceptions", None)
        with pytest.raises(ConfigurationError, match="wali\\[forms\\]"):
            parse_form_data(_close(), MULTIPART)
