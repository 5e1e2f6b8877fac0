import json
import logging

import httpx
import pytest

from pengines.config import PengineBuilder
from pengines.exceptions import ConfigurationError


@pytest.mark.unit
class TestActualUrl:
    def test_action_url(self):
        builder = PengineBuilder(server="http://localhost:3030/")
        assert builder.actual_url("create") == "http://localhost:3030/pengine/create"

    def test_action_url_ignores_base_path(self):
        builder = PengineBuilder(server="https://example.org/some/page")
        assert builder.actual_url("send") == "https://example.org/pengine/send"

    def test_pengine_id_is_form_encoded(self):
        builder = PengineBuilder(server="http://localhost:3030")
        url = httpx.URL(builder.actual_url("send", "a b/c&d"))
        assert url.path == "/pengine/send"
        assert url.params["format"] == "json"
        assert url.params["id"] == "a b/c&d"
        assert "%2F" in str(url)

    def test_missing_server_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError, match="without setting server"):
            PengineBuilder().actual_url("create")

    @pytest.mark.parametrize("server", ["localhost", "/pengine", "mailto:me@example.org"])
    def test_relative_or_opaque_server_is_rejected(self, server):
        with pytest.raises(ConfigurationError):
            PengineBuilder(server=server).validate()


@pytest.mark.unit
class TestRequestBodies:
    def test_minimal_create_body(self):
        body = json.loads(PengineBuilder(server="http://h/").request_body_create())
        assert body == {"format": "json"}

    def test_full_create_body(self):
        builder = PengineBuilder(
            server="http://h/",
            application="genealogist",
            ask="member(X,[1,2])",
            chunk=5,
            destroy=False,
            srctext="p(1).",
            srcurl="http://h/p.pl",
        )
        assert json.loads(builder.request_body_create()) == {
            "destroy": "false",
            "chunk": 5,
            "format": "json",
            "application": "genealogist",
            "srctext": "p(1).",
            "srcurl": "http://h/p.pl",
            "ask": "member(X,[1,2])",
        }

    def test_command_bodies(self):
        builder = PengineBuilder()
        assert builder.request_body_ask("member(X,[1,2,3])") == "ask(member(X,[1,2,3]),[])."
        assert builder.request_body_next() == "next."
        assert builder.request_body_stop() == "stop."
        assert builder.request_body_destroy() == "destroy."
        assert builder.request_body_pull_response() == "pull_response."

    @pytest.mark.parametrize("chunk", [0, -1])
    def test_chunk_must_be_positive(self, chunk):
        with pytest.raises(ConfigurationError, match="chunk"):
            PengineBuilder(chunk=chunk)


@pytest.mark.unit
class TestBuilderHelpers:
    def test_copy_is_independent(self):
        original = PengineBuilder(server="http://h/", ask="true")
        clone = original.copy()
        clone.remove_ask()

        assert original.has_ask()
        assert not clone.has_ask()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PENGINE_SERVER", "http://env-host:3030/")
        monkeypatch.setenv("PENGINE_CHUNK", "10")
        monkeypatch.setenv("PENGINE_DESTROY", "false")
        monkeypatch.setenv("PENGINE_TIMEOUT", "2.5")

        builder = PengineBuilder.from_env(application="swish")

        assert builder.server == "http://env-host:3030/"
        assert builder.chunk == 10
        assert builder.destroy is False
        assert builder.timeout == 2.5
        assert builder.application == "swish"

    def test_from_env_defaults(self):
        builder = PengineBuilder.from_env()
        assert builder.server is None
        assert builder.application == "sandbox"
        assert builder.chunk == 1
        assert builder.destroy is True

    def test_from_env_rejects_bad_chunk(self, monkeypatch):
        monkeypatch.setenv("PENGINE_CHUNK", "lots")
        with pytest.raises(ConfigurationError, match="PENGINE_CHUNK"):
            PengineBuilder.from_env()

    def test_summary_hides_source_text(self):
        summary = PengineBuilder(server="http://h/", srctext="p(1).").get_summary()
        assert summary["srctext"] == "<5 chars>"
        assert summary["server"] == "http://h/"

    def test_dump_debug_state_logs(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="pengines.config"):
            PengineBuilder(server="http://h/", alias="bob").dump_debug_state()
        assert "alias bob" in caplog.text
        assert "destroy at end of query" in caplog.text
