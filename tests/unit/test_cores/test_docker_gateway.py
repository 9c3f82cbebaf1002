"""
Unit tests for DockerGateway.

run_command is patched at the gateway module; nothing here talks to a
Docker daemon.
"""

import json
import subprocess
import pytest
from unittest.mock import patch

from docker_backup.cores.docker_gateway import DockerGateway, _parse_json_lines
from docker_backup.errors import DockerCommandError

RUN_COMMAND = "docker_backup.cores.docker_gateway.run_command"


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(["docker"], returncode, stdout=stdout, stderr=stderr)


@pytest.mark.unit
class TestExecution:

    def test_run_container_builds_argv(self):
        gateway = DockerGateway(timeout=42)
        with patch(RUN_COMMAND, return_value=completed(stdout="ok")) as mock_run:
            result = gateway.run_container(["-v", "vol:/volume", "alpine", "true"])

        cmd = mock_run.call_args.args[0]
        assert cmd == ["docker", "run", "--rm", "-v", "vol:/volume", "alpine", "true"]
        assert mock_run.call_args.kwargs["timeout"] == 42
        assert mock_run.call_args.kwargs["check"] is False
        assert result.succeeded()
        assert result.stdout == "ok"

    def test_non_zero_exit_is_returned_not_raised(self):
        with patch(RUN_COMMAND, return_value=completed(2, stderr="tar: error")):
            result = DockerGateway().run_container(["alpine", "false"])

        assert result.exit_code == 2
        assert result.stderr == "tar: error"

    def test_timeout_becomes_docker_command_error(self):
        with patch(RUN_COMMAND, side_effect=subprocess.TimeoutExpired(["docker"], 5)):
            with pytest.raises(DockerCommandError) as exc:
                DockerGateway(timeout=5).run_container(["alpine"])

        assert "timed out after 5s" in str(exc.value)
        assert exc.value.command[:3] == ["docker", "run", "--rm"]

    def test_missing_binary(self):
        with patch(RUN_COMMAND, side_effect=FileNotFoundError("docker")):
            with pytest.raises(DockerCommandError) as exc:
                DockerGateway(binary="/opt/docker").volume_exists("x")

        assert "Docker CLI not found" in str(exc.value)

    def test_custom_binary(self):
        with patch(RUN_COMMAND, return_value=completed()) as mock_run:
            DockerGateway(binary="podman").image_exists("nginx")

        assert mock_run.call_args.args[0] == ["podman", "image", "inspect", "nginx"]

    def test_save_and_load(self, tmp_path):
        gateway = DockerGateway()
        with patch(RUN_COMMAND, return_value=completed()) as mock_run:
            gateway.save_image("nginx:latest", tmp_path / "n.tar")
            gateway.load_image(tmp_path / "n.tar")

        save_cmd = mock_run.call_args_list[0].args[0]
        load_cmd = mock_run.call_args_list[1].args[0]
        assert save_cmd == ["docker", "save", "-o", str(tmp_path / "n.tar"), "nginx:latest"]
        assert load_cmd == ["docker", "load", "-i", str(tmp_path / "n.tar")]


@pytest.mark.unit
class TestExistence:

    @pytest.mark.parametrize("returncode,expected", [(0, True), (1, False)])
    def test_volume_exists(self, returncode, expected):
        with patch(RUN_COMMAND, return_value=completed(returncode)) as mock_run:
            assert DockerGateway().volume_exists("app-data") is expected
        assert mock_run.call_args.args[0] == ["docker", "volume", "inspect", "app-data"]

    @pytest.mark.parametrize("returncode,expected", [(0, True), (1, False)])
    def test_image_exists(self, returncode, expected):
        with patch(RUN_COMMAND, return_value=completed(returncode)):
            assert DockerGateway().image_exists("nginx:latest") is expected


@pytest.mark.unit
class TestListing:

    def test_list_volumes_json_lines(self):
        stdout = "\n".join([
            json.dumps({"Name": "zeta", "Driver": "local", "Labels": ""}),
            json.dumps({"Name": "alpha", "Driver": "local", "Labels": "a=b"}),
        ])
        with patch(RUN_COMMAND, return_value=completed(stdout=stdout)):
            volumes = DockerGateway().list_volumes()

        assert [v.name for v in volumes] == ["alpha", "zeta"]
        assert volumes[0].labels == {"a": "b"}

    def test_list_volumes_empty(self):
        with patch(RUN_COMMAND, return_value=completed(stdout="")):
            assert DockerGateway().list_volumes() == []

    def test_list_volumes_falls_back_to_inspect(self):
        inspect = json.dumps([{"Name": "db", "Driver": "local", "Mountpoint": "/var/lib/docker/volumes/db/_data"}])
        responses = [
            completed(1, stderr="unknown format"),
            completed(stdout="db\n"),
            completed(stdout=inspect),
        ]
        with patch(RUN_COMMAND, side_effect=responses) as mock_run:
            volumes = DockerGateway().list_volumes()

        assert [v.name for v in volumes] == ["db"]
        assert volumes[0].mountpoint.endswith("db/_data")
        assert mock_run.call_args_list[2].args[0] == ["docker", "volume", "inspect", "db"]

    def test_list_volumes_fallback_failure_raises(self):
        responses = [completed(1), completed(1, stderr="Cannot connect to the Docker daemon")]
        with patch(RUN_COMMAND, side_effect=responses):
            with pytest.raises(DockerCommandError) as exc:
                DockerGateway().list_volumes()

        assert "Cannot connect" in str(exc.value)

    def test_list_images(self):
        stdout = json.dumps({"ID": "abc123", "Repository": "nginx", "Tag": "latest", "Size": "187MB"})
        with patch(RUN_COMMAND, return_value=completed(stdout=stdout)):
            images = DockerGateway().list_images()

        assert images[0].first_tag == "nginx:latest"

    def test_list_images_daemon_down(self):
        with patch(RUN_COMMAND, return_value=completed(1, stderr="Cannot connect")):
            with pytest.raises(DockerCommandError):
                DockerGateway().list_images()

    def test_list_images_garbage_output(self):
        with patch(RUN_COMMAND, return_value=completed(stdout="REPOSITORY TAG")):
            with pytest.raises(DockerCommandError):
                DockerGateway().list_images()


@pytest.mark.unit
class TestParseJsonLines:

    def test_array(self):
        assert _parse_json_lines('[{"Name": "a"}, 3]') == [{"Name": "a"}]

    def test_lines(self):
        assert _parse_json_lines('{"a": 1}\n\n{"b": 2}\n') == [{"a": 1}, {"b": 2}]

    def test_empty_and_invalid(self):
        assert _parse_json_lines("") == []
        assert _parse_json_lines("not json") is None
