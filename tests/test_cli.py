"""Tests for the command-line interface."""

from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest
import respx
import typer
from httpx import Response
from typer.testing import CliRunner

from gitlab_rest_api import __version__
from gitlab_rest_api.cli import app, method_name, parse_call_args
from gitlab_rest_api.rest.payload import FileUpload

API_URL = "https://gitlab.example.com/api/v4"
AUTH = ["--url", API_URL, "--private-token", "glpat-cli-token"]

runner = CliRunner()


class TestParseCallArgs:
    """Tests for argument parsing."""

    def test_positional_only(self) -> None:
        """Test plain arguments are path values."""
        assert parse_call_args(["group/project", "5"]) == (["group/project", "5"], None)

    def test_params(self) -> None:
        """Test key:value arguments become parameters."""
        positional, params = parse_call_args(["1", "title:Broken build", "labels:bug,ci"])

        assert positional == ["1"]
        assert params == {"title": "Broken build", "labels": "bug,ci"}

    def test_value_may_contain_colon(self) -> None:
        """Test only the first colon separates key and value."""
        _, params = parse_call_args(["url:https://example.com"])

        assert params == {"url": "https://example.com"}

    def test_list_params(self) -> None:
        """Test keys ending in [] collect values."""
        _, params = parse_call_args(["labels[]:bug", "labels[]:ci"])

        assert params == {"labels[]": ["bug", "ci"]}

    def test_access_level_names(self) -> None:
        """Test access level names become numbers."""
        _, params = parse_call_args(["user_id:3", "access_level:developer"])

        assert params == {"user_id": "3", "access_level": 30}

    def test_file_upload(self) -> None:
        """Test @path values become a FileUpload carrying the other parameters."""
        positional, upload = parse_call_args(["1", "avatar:@logo.png", "name:demo"])

        assert positional == ["1"]
        assert upload == FileUpload("logo.png", field="avatar", fields={"name": "demo"})

    def test_two_files(self) -> None:
        """Test only one file may be uploaded."""
        with pytest.raises(typer.BadParameter):
            parse_call_args(["a:@one", "b:@two"])

    def test_method_name(self) -> None:
        """Test kebab-case method names map to endpoint names."""
        assert method_name("create-issue") == "create_issue"


class TestCallCommand:
    """Tests for the call command."""

    @respx.mock
    def test_prints_json(self) -> None:
        """Test the decoded result is printed as sorted JSON."""
        route = respx.get(f"{API_URL}/projects/group%2Fproject").mock(
            return_value=Response(200, json={"name": "project", "id": 1})
        )

        result = runner.invoke(app, ["call", *AUTH, "project", "group/project"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"id": 1, "name": "project"}
        assert result.stdout.index('"id"') < result.stdout.index('"name"')
        assert route.calls[0].request.headers["Private-Token"] == "glpat-cli-token"

    @respx.mock
    def test_kebab_case_and_params(self) -> None:
        """Test kebab-case methods and key:value parameters."""
        route = respx.post(f"{API_URL}/projects/1/issues").mock(
            return_value=Response(201, json={"iid": 2})
        )

        result = runner.invoke(app, ["call", *AUTH, "create-issue", "1", "title:Broken build"])

        assert result.exit_code == 0, result.output
        assert json.loads(route.calls[0].request.content) == {"title": "Broken build"}

    @respx.mock
    def test_absent_prints_nothing(self) -> None:
        """Test a None result prints nothing."""
        respx.get(f"{API_URL}/users/9").mock(return_value=Response(404))

        result = runner.invoke(app, ["call", *AUTH, "user", "9"])

        assert result.exit_code == 0
        assert result.stdout == ""

    @respx.mock
    def test_raw_output(self) -> None:
        """Test raw results are written verbatim."""
        respx.get(f"{API_URL}/projects/1/repository/files/README.md/raw").mock(
            return_value=Response(200, content=b"# Title\n")
        )

        result = runner.invoke(app, ["call", *AUTH, "raw-file", "1", "README.md"])

        assert result.exit_code == 0, result.output
        assert result.stdout_bytes == b"# Title\n"

    @respx.mock
    def test_all_pages(self) -> None:
        """Test --all prints every record."""
        respx.get(f"{API_URL}/projects").mock(
            side_effect=[
                Response(200, json=[{"id": 1}, {"id": 2}]),
                Response(200, json=[{"id": 3}]),
            ]
        )

        result = runner.invoke(app, ["call", *AUTH, "--all", "projects", "per_page:2"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [{"id": 1}, {"id": 2}, {"id": 3}]

    @respx.mock
    def test_api_error_exits_1(self) -> None:
        """Test API errors exit with status 1."""
        respx.post(f"{API_URL}/projects/1/issues").mock(
            return_value=Response(400, json={"message": "title is missing"})
        )

        result = runner.invoke(app, ["call", *AUTH, "create-issue", "1"])

        assert result.exit_code == 1
        assert "Error: [400]" in result.output

    def test_unknown_method_exits_1(self) -> None:
        """Test unknown methods exit with status 1."""
        result = runner.invoke(app, ["call", *AUTH, "frobnicate"])

        assert result.exit_code == 1
        assert "Unknown endpoint: frobnicate" in result.output

    def test_arity_error_exits_1(self) -> None:
        """Test argument errors exit with status 1."""
        result = runner.invoke(app, ["call", *AUTH, "issue", "1"])

        assert result.exit_code == 1
        assert "must be called with 2 argument" in result.output

    def test_missing_url_exits_1(self) -> None:
        """Test a missing URL is a configuration error."""
        result = runner.invoke(app, ["call", "projects"])

        assert result.exit_code == 1
        assert "URL" in result.output

    def test_both_tokens_exit_1(self) -> None:
        """Test giving both tokens is a configuration error."""
        result = runner.invoke(
            app, ["call", *AUTH, "--access-token", "other", "projects"]
        )

        assert result.exit_code == 1
        assert "mutually exclusive" in result.output

    @respx.mock
    def test_settings_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test URL and token can come from the environment."""
        monkeypatch.setenv("GITLAB_API_URL", API_URL)
        monkeypatch.setenv("GITLAB_API_ACCESS_TOKEN", "env-token")
        route = respx.get(f"{API_URL}/version").mock(
            return_value=Response(200, json={"version": "17.0.0"})
        )

        result = runner.invoke(app, ["call", "version"])

        assert result.exit_code == 0, result.output
        assert route.calls[0].request.headers["Authorization"] == "Bearer env-token"


class TestOtherCommands:
    """Tests for methods, configure and version."""

    def test_methods(self) -> None:
        """Test methods lists matching endpoints."""
        result = runner.invoke(app, ["methods", "merge-request-note"])

        assert result.exit_code == 0
        assert "merge_request_notes(project_id, merge_request_iid" in result.stdout
        assert "create_issue" not in result.stdout

    @pytest.mark.parametrize("version", ["4", "V4", "v4"])
    def test_methods_version_spellings(self, version: str) -> None:
        """Test methods accepts the same version spellings as the config."""
        result = runner.invoke(app, ["methods", "--api-version", version, "merge-request-note"])

        assert result.exit_code == 0, result.output
        assert "merge_request_notes(" in result.stdout

    def test_methods_bad_version(self) -> None:
        """Test an unknown API version is rejected."""
        result = runner.invoke(app, ["methods", "--api-version", "v9"])

        assert result.exit_code == 1

    def test_configure(self, tmp_path: Path) -> None:
        """Test configure writes a private config file."""
        path = tmp_path / "gitlab.json"

        result = runner.invoke(
            app,
            ["configure", "--config-file", str(path)],
            input=f"{API_URL}\nprivate\nglpat-secret\n",
        )

        assert result.exit_code == 0, result.output
        assert json.loads(path.read_text()) == {"private_token": "glpat-secret", "url": API_URL}
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert "glpat-secret" not in result.output

    @respx.mock
    def test_configured_file_is_used(self, tmp_path: Path) -> None:
        """Test call reads the file written by configure."""
        path = tmp_path / "gitlab.json"
        path.write_text(json.dumps({"url": API_URL, "private_token": "from-file"}))
        route = respx.get(f"{API_URL}/version").mock(return_value=Response(200, json={}))

        result = runner.invoke(app, ["call", "--config-file", str(path), "version"])

        assert result.exit_code == 0, result.output
        assert route.calls[0].request.headers["Private-Token"] == "from-file"

    def test_unreadable_config_file(self, tmp_path: Path) -> None:
        """Test an unreadable config file is reported, not a traceback."""
        result = runner.invoke(app, ["call", "--config-file", str(tmp_path), "version"])

        assert result.exit_code == 1
        assert "Error: Cannot read configuration file" in result.output

    def test_version(self) -> None:
        """Test version prints the package version."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_version_option(self) -> None:
        """Test the --version option."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"gitlab-rest-api version {__version__}" in result.stdout
