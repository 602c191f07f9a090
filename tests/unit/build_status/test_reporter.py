"""Tests for the status reporter."""

import dataclasses
import json
from unittest.mock import MagicMock

import httpx
import pytest

from bitbucket_build_status.client import BitbucketServerClient
from bitbucket_build_status.config import CIContext, StepInputs
from bitbucket_build_status.exceptions import BuildStatusTransferError
from bitbucket_build_status.models import BasicAuth, CertAuth
from bitbucket_build_status.reporter import StatusReporter, format_response


def fail_head() -> str:
    raise AssertionError("git should not be consulted")


class TestStatusReporter:
    """Tests for StatusReporter.run."""

    def test_successful_run(
        self, step_inputs, ci_context, client_factory, recording_transport, capsys
    ):
        reporter = StatusReporter(
            step_inputs,
            ci_context,
            head_resolver=fail_head,
            client_factory=client_factory,
        )

        assert reporter.run() == 0

        assert len(recording_transport.requests) == 1
        assert recording_transport.last_json == {
            "state": "SUCCESSFUL",
            "key": "Bitrise - abc123 - Build deploy - #42",
            "name": "Bitrise MyApp (deploy) #42",
            "url": "https://app.bitrise.io/build/abc123",
            "description": "workflow: deploy",
        }
        auth, ssl_verify = client_factory.calls[0]
        assert isinstance(auth, BasicAuth)
        assert ssl_verify is True

        out = capsys.readouterr().out
        assert "--- step inputs (non-sensitive) ---" in out
        assert "- domain: bitbucket.example.com" in out
        assert "- computed Bitbucket state: SUCCESSFUL" in out
        assert "- using_cert_auth: false" in out
        assert "Post build status: SUCCESSFUL" in out
        assert (
            "API Endpoint: https://bitbucket.example.com/rest/build-status/1.0/"
            "commits/a123456789"
        ) in out
        assert "HTTP/1.1 204 No Content" in out
        assert "x-request-id: req-1" in out.lower()

    def test_secrets_never_printed(
        self, step_inputs, ci_context, client_factory, capsys, inline_cert, inline_key
    ):
        inputs = dataclasses.replace(
            step_inputs,
            password="hunter2-secret",
            client_cert=inline_cert,
            client_key=inline_key,
        )

        reporter = StatusReporter(inputs, ci_context, client_factory=client_factory)
        assert reporter.run() == 0

        out = capsys.readouterr().out
        assert "hunter2-secret" not in out
        assert "BEGIN CERTIFICATE" not in out
        assert "BEGIN PRIVATE KEY" not in out
        assert "- using_cert_auth: true" in out

    def test_manual_trigger_skips_everything(self, capsys):
        """Test a manual trigger exits 0 without validating or sending."""
        factory = MagicMock()
        reporter = StatusReporter(
            StepInputs(),
            CIContext(trigger_method="manual"),
            head_resolver=fail_head,
            client_factory=factory,
        )

        assert reporter.run() == 0

        factory.assert_not_called()
        assert capsys.readouterr().out == "- Build triggered manually, skipping\n"

    def test_validation_failure(self, step_inputs, ci_context, capsys):
        factory = MagicMock()
        inputs = dataclasses.replace(step_inputs, domain="", build_url="")

        assert StatusReporter(inputs, ci_context, client_factory=factory).run() == 1

        factory.assert_not_called()
        out = capsys.readouterr().out
        assert "- Missing input field: domain\n" in out
        assert "- Missing input field: build_url\n" in out
        assert "step inputs" not in out

    def test_commit_hash_fallback_warning(
        self, step_inputs, ci_context, client_factory, recording_transport, capsys
    ):
        inputs = dataclasses.replace(step_inputs, commit_hash="")
        reporter = StatusReporter(
            inputs,
            ci_context,
            head_resolver=lambda: "fedcba987",
            client_factory=client_factory,
        )

        assert reporter.run() == 0

        out = capsys.readouterr().out
        assert (
            "- Missing input field: git_clone_commit_hash, falling back to "
            "'git rev-parse HEAD' (fedcba987)"
        ) in out
        assert str(recording_transport.requests[0].url).endswith("/commits/fedcba987")

    def test_inline_pem_temp_files_removed_after_run(
        self, step_inputs, ci_context, tmp_path, inline_cert, inline_key
    ):
        """Test inline PEM files exist during the request and are gone after."""
        seen = {}

        def factory(auth, ssl_verify):
            assert isinstance(auth, CertAuth)
            with open(auth.cert_path, encoding="utf-8") as f:
                seen["cert"] = f.read()
            with open(auth.key_path, encoding="utf-8") as f:
                seen["key"] = f.read()
            seen["paths"] = (auth.cert_path, auth.key_path)
            return BitbucketServerClient(
                BasicAuth(username="u", password="p"),
                transport=httpx.MockTransport(lambda request: httpx.Response(201)),
            )

        inputs = dataclasses.replace(
            step_inputs,
            username="",
            password="",
            client_cert=inline_cert,
            client_key=inline_key,
        )
        reporter = StatusReporter(
            inputs, ci_context, client_factory=factory, temp_dir=str(tmp_path)
        )

        assert reporter.run() == 0

        assert seen["cert"] == f"{inline_cert}\n"
        assert seen["key"] == f"{inline_key}\n"
        assert seen["paths"][0] != seen["paths"][1]
        assert list(tmp_path.iterdir()) == []

    def test_temp_files_removed_after_validation_failure(
        self, step_inputs, ci_context, tmp_path, inline_cert, inline_key
    ):
        inputs = dataclasses.replace(
            step_inputs, domain="", client_cert=inline_cert, client_key=inline_key
        )
        reporter = StatusReporter(
            inputs, ci_context, client_factory=MagicMock(), temp_dir=str(tmp_path)
        )

        assert reporter.run() == 1
        assert list(tmp_path.iterdir()) == []

    def test_temp_files_removed_after_transfer_failure(
        self, step_inputs, ci_context, tmp_path, inline_cert, inline_key, capsys
    ):
        def factory(auth, ssl_verify):
            raise BuildStatusTransferError("Request error: refused", exit_code=7)

        inputs = dataclasses.replace(
            step_inputs, client_cert=inline_cert, client_key=inline_key
        )
        reporter = StatusReporter(
            inputs, ci_context, client_factory=factory, temp_dir=str(tmp_path)
        )

        assert reporter.run() == 7
        assert list(tmp_path.iterdir()) == []
        assert "- Request error: refused" in capsys.readouterr().err

    def test_temp_files_removed_after_unexpected_error(
        self, step_inputs, ci_context, tmp_path, inline_cert, inline_key
    ):
        def factory(auth, ssl_verify):
            raise RuntimeError("boom")

        inputs = dataclasses.replace(
            step_inputs, client_cert=inline_cert, client_key=inline_key
        )
        reporter = StatusReporter(
            inputs, ci_context, client_factory=factory, temp_dir=str(tmp_path)
        )

        with pytest.raises(RuntimeError):
            reporter.run()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.parametrize("status_code", [400, 401, 500])
    def test_error_response_still_exits_zero(
        self, step_inputs, ci_context, status_code, capsys
    ):
        """Test a rejected status does not fail the step."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(
                status_code, json={"errors": [{"message": "nope"}]}
            )
        )

        def factory(auth, ssl_verify):
            return BitbucketServerClient(auth, ssl_verify, transport=transport)

        reporter = StatusReporter(step_inputs, ci_context, client_factory=factory)
        assert reporter.run() == 0
        assert f"HTTP/1.1 {status_code}" in capsys.readouterr().out

    def test_connection_failure_exit_code(self, step_inputs, ci_context):
        def handler(request):
            raise httpx.ConnectError("[Errno -2] Name or service not known")

        def factory(auth, ssl_verify):
            return BitbucketServerClient(
                auth, ssl_verify, transport=httpx.MockTransport(handler)
            )

        reporter = StatusReporter(step_inputs, ci_context, client_factory=factory)
        assert reporter.run() == 6

    def test_malformed_domain_exit_code(
        self, step_inputs, ci_context, recording_transport, capsys
    ):
        """Test a domain that does not form a valid URL exits 3."""

        def factory(auth, ssl_verify):
            return BitbucketServerClient(
                auth, ssl_verify, transport=recording_transport
            )

        inputs = dataclasses.replace(
            step_inputs, domain="bitbucket.example.com:notaport"
        )
        reporter = StatusReporter(inputs, ci_context, client_factory=factory)

        assert reporter.run() == 3

        assert recording_transport.requests == []
        captured = capsys.readouterr()
        assert "- Invalid URL: " in captured.err
        assert "HTTP/1.1" not in captured.out

    def test_messages_printed_in_check_order(self, step_inputs, ci_context, capsys):
        """Test warnings and errors are interleaved in the order checks run."""
        inputs = dataclasses.replace(
            step_inputs, domain="", commit_hash="", app_title=""
        )
        reporter = StatusReporter(
            inputs,
            ci_context,
            head_resolver=lambda: "fedcba987",
            client_factory=MagicMock(),
        )

        assert reporter.run() == 1

        assert capsys.readouterr().out.splitlines() == [
            "- Missing input field: domain",
            "- Missing input field: git_clone_commit_hash, falling back to "
            "'git rev-parse HEAD' (fedcba987)",
            "- Missing input field: app_title",
        ]

    def test_ssl_verify_passed_to_client(self, step_inputs, ci_context, client_factory):
        inputs = dataclasses.replace(step_inputs, ssl_verify=False)

        StatusReporter(inputs, ci_context, client_factory=client_factory).run()

        assert client_factory.calls[0][1] is False


def test_format_response():
    response = httpx.Response(
        200,
        headers=[("Content-Type", "application/json"), ("Set-Cookie", "a=1")],
        content=json.dumps({"ok": True}).encode(),
    )

    rendered = format_response(response)

    lines = rendered.split("\n")
    assert lines[0] == "HTTP/1.1 200 OK"
    assert "content-type: application/json" in [line.lower() for line in lines]
    assert lines[-2] == ""
    assert lines[-1] == '{"ok": true}'
