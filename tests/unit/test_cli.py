"""
Tests for the draft editing CLI.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from inkpost.app_shell import cli


@pytest.fixture
def run(tmp_path: Path, capsys):
    def _run(*argv: str) -> str:
        cli.main(["--drafts-dir", str(tmp_path), *argv])
        return capsys.readouterr().out

    return _run


def test_add_set_and_show(run, tmp_path: Path) -> None:
    block_id = run("add", "code").strip()
    assert block_id.startswith("code-")
    assert run("set", block_id, "--json", '{"code": "print(1)"}') == f"Updated {block_id}\n"

    stored = json.loads((tmp_path / "blogDraft.json").read_text())
    assert stored["payloads"][block_id]["code"] == "print(1)"
    assert f"[0] code       {block_id}" in run("show")


def test_set_from_file(run, tmp_path: Path) -> None:
    block_id = run("add", "table").strip()
    payload = tmp_path / "table.json"
    payload.write_text('{"headers": ["a"], "rows": [["1"]]}')
    run("set", block_id, "--file", str(payload))
    stored = json.loads((tmp_path / "blogDraft.json").read_text())
    assert stored["payloads"][block_id]["headers"] == ["a"]


def test_meta(run) -> None:
    out = run("meta", "--title", "Hello, World!", "--tags", "a, b")
    assert "Slug:        hello-world" in out
    assert "Tags:        a, b" in out


def test_outline(run) -> None:
    block_id = run("add", "richtext").strip()
    doc = {
        "type": "doc",
        "content": [
            {"type": "heading", "attrs": {"level": 1}, "content": [{"type": "text", "text": "Top"}]},
            {"type": "heading", "attrs": {"level": 2}, "content": [{"type": "text", "text": "Sub"}]},
        ],
    }
    run("set", block_id, "--json", json.dumps(doc))
    assert run("outline") == f"- Top  #{block_id}-h0\n  - Sub  #{block_id}-h1\n"


def test_move_and_rm(run) -> None:
    first = run("add", "code").strip()
    second = run("add", "video").strip()
    out = run("move", second, "0")
    assert out.index(second) < out.index(first)
    assert run("rm", first) == f"Removed code block {first}\n"


def test_rm_deletes_image_through_api(run, monkeypatch) -> None:
    calls = []

    def fake_request(method, url, json, headers, timeout):
        calls.append((method, url, json, headers))
        return httpx.Response(200, json={"success": True, "deleted": [json["key"]], "failed": []})

    monkeypatch.setattr(cli.httpx, "request", fake_request)
    block_id = run("add", "image").strip()
    run("set", block_id, "--json", '{"key": "pics/a.png"}')

    assert run("rm", block_id, "--api", "http://api.test", "--token", "tok") == (
        f"Removed image block {block_id}\n"
    )
    assert calls == [
        (
            "DELETE",
            "http://api.test/api/s3/delete",
            {"key": "pics/a.png"},
            {"Authorization": "Bearer tok"},
        )
    ]


def test_rm_keeps_removal_when_image_delete_fails(run, monkeypatch, tmp_path, caplog) -> None:
    monkeypatch.setattr(
        cli.httpx, "request", lambda *a, **kw: httpx.Response(500, json={"detail": "boom"})
    )
    block_id = run("add", "image").strip()
    run("set", block_id, "--json", '{"key": "pics/a.png"}')

    out = run("rm", block_id, "--token", "tok")

    assert out == f"Removed image block {block_id}\n"
    assert "Failed to delete image pics/a.png" in caplog.text
    stored = json.loads((tmp_path / "blogDraft.json").read_text())
    assert stored["blocks"] == []


def test_rm_without_token_leaves_image(run, monkeypatch, caplog) -> None:
    monkeypatch.delenv("INKPOST_TOKEN", raising=False)
    monkeypatch.setattr(cli.httpx, "request", lambda *a, **kw: pytest.fail("no request expected"))
    block_id = run("add", "image").strip()
    run("set", block_id, "--json", '{"key": "pics/a.png"}')

    run("rm", block_id)
    assert "image pics/a.png was left in the store" in caplog.text


def test_unknown_block_exits(run) -> None:
    with pytest.raises(SystemExit) as exc:
        run("rm", "missing")
    assert exc.value.code == 1


def test_bad_payload_exits(run) -> None:
    block_id = run("add", "image").strip()
    with pytest.raises(SystemExit):
        run("set", block_id, "--json", '{"type": "code"}')
    with pytest.raises(SystemExit):
        run("set", block_id, "--json", "{not json")


def test_publish_requires_token(run, monkeypatch) -> None:
    monkeypatch.delenv("INKPOST_TOKEN", raising=False)
    with pytest.raises(SystemExit):
        run("publish")


def test_publish_posts_submission(run, monkeypatch, tmp_path: Path) -> None:
    calls = []

    def fake_post(url, json, headers, timeout):
        calls.append((url, json, headers))
        return httpx.Response(200, json={"success": True, "blog": {"slug": "hello"}})

    monkeypatch.setattr(cli.httpx, "post", fake_post)
    run("meta", "--title", "Hello")
    out = run("publish", "--api", "http://api.test/", "--token", "tok")

    url, body, headers = calls[0]
    assert url == "http://api.test/api/blogs/create"
    assert body["title"] == "Hello"
    assert headers == {"Authorization": "Bearer tok"}
    assert out == "Published: /blog/hello\n"
    assert not (tmp_path / "blogDraft.json").exists()


def test_publish_rejected_keeps_draft(run, monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(
        cli.httpx, "post", lambda *a, **kw: httpx.Response(400, json={"detail": "Title is required"})
    )
    run("add", "code")
    with pytest.raises(SystemExit):
        run("publish", "--token", "tok")
    assert (tmp_path / "blogDraft.json").exists()
