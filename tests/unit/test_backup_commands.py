"""
Unit tests for backup commands (backup:volumes, backup:images).

Commands run through the Typer app with a mocked Docker gateway placed
on the tool bench via `obj`.
"""

import pytest
from pathlib import Path

from docker_backup.__main__ import app
from docker_backup.errors import DockerCommandError
from docker_backup.types import DockerImageInfo, DockerVolumeInfo, ProcessResult


def invoke(cli_runner, tmp_config, gateway, *args):
    return cli_runner.invoke(app, ["--config", str(tmp_config), *args], obj={"gateway": gateway})


def container_writes_archive(directory: Path, size: int = 1500):
    def _run(args):
        target = next(arg for arg in args if arg.startswith("/backup/"))
        (directory / target[len("/backup/"):]).write_bytes(b"x" * size)
        return ProcessResult(["docker", "run"], 0)
    return _run


@pytest.mark.unit
class TestBackupVolumesCommand:
    """Tests for backup:volumes."""

    def test_requires_names(self, cli_runner, tmp_config, mock_gateway):
        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes")

        assert result.exit_code == 1
        assert "at least one volume name" in result.stdout
        mock_gateway.run_container.assert_not_called()

    def test_list_volumes(self, cli_runner, tmp_config, mock_gateway):
        mock_gateway.list_volumes.return_value = [
            DockerVolumeInfo(name="app-data"),
            DockerVolumeInfo(name="db"),
        ]

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "--list")

        assert result.exit_code == 0
        assert "app-data" in result.stdout
        assert "db" in result.stdout
        mock_gateway.run_container.assert_not_called()

    def test_list_without_volumes(self, cli_runner, tmp_config, mock_gateway):
        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "-l")

        assert result.exit_code == 0
        assert "No Docker volumes found." in result.stdout

    def test_list_docker_unavailable(self, cli_runner, tmp_config, mock_gateway):
        mock_gateway.list_volumes.side_effect = DockerCommandError("Cannot connect to the Docker daemon")

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "--list")

        assert result.exit_code == 1
        assert "Failed to list volumes" in result.stdout

    def test_backup_single_volume(self, cli_runner, tmp_config, mock_gateway, backup_dir):
        mock_gateway.run_container.side_effect = container_writes_archive(backup_dir)

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "app-data", "-o", str(backup_dir))

        assert result.exit_code == 0
        assert "[1/1]" in result.stdout
        assert "1.46 KB" in result.stdout
        assert "Successful: 1" in result.stdout
        assert "All backups completed successfully!" in result.stdout
        assert (backup_dir / "app-data.tar.gz").stat().st_size == 1500

    def test_default_directory_from_config(self, cli_runner, tmp_config, mock_gateway, tmp_path):
        target = tmp_path / "volumes"
        mock_gateway.run_container.side_effect = container_writes_archive(target)

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "app-data")

        assert result.exit_code == 0
        assert (target / "app-data.tar.gz").exists()

    def test_env_directory_beats_config(self, cli_runner, tmp_config, mock_gateway, tmp_path, monkeypatch):
        target = tmp_path / "from-env"
        monkeypatch.setenv("BACKUP_DEFAULT_DIR", str(target))
        mock_gateway.run_container.side_effect = container_writes_archive(target)

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "app-data")

        assert result.exit_code == 0
        assert (target / "app-data.tar.gz").exists()

    def test_no_compression(self, cli_runner, tmp_config, mock_gateway, backup_dir):
        mock_gateway.run_container.side_effect = container_writes_archive(backup_dir)

        result = invoke(
            cli_runner, tmp_config, mock_gateway,
            "backup:volumes", "app-data", "-o", str(backup_dir), "--no-compression",
        )

        assert result.exit_code == 0
        assert (backup_dir / "app-data.tar").exists()
        assert not (backup_dir / "app-data.tar.gz").exists()

    def test_second_run_skips(self, cli_runner, tmp_config, mock_gateway, backup_dir):
        mock_gateway.run_container.side_effect = container_writes_archive(backup_dir)
        invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "app-data", "-o", str(backup_dir))

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "app-data", "-o", str(backup_dir))

        assert result.exit_code == 0
        assert "File already exists" in result.stdout
        assert "Skipped:    1" in result.stdout
        assert mock_gateway.run_container.call_count == 1

    def test_partial_failure_exits_1(self, cli_runner, tmp_config, mock_gateway, backup_dir):
        mock_gateway.volume_exists.side_effect = lambda name: name != "ghost"
        mock_gateway.run_container.side_effect = container_writes_archive(backup_dir)

        result = invoke(
            cli_runner, tmp_config, mock_gateway,
            "backup:volumes", "app-data", "ghost", "db", "-o", str(backup_dir),
        )

        assert result.exit_code == 1
        assert "Volume 'ghost' not found" in result.stdout
        assert "Successful: 2" in result.stdout
        assert "Failed:     1" in result.stdout
        assert "Some backups failed" in result.stdout
        assert (backup_dir / "db.tar.gz").exists()

    def test_unusable_output_directory(self, cli_runner, tmp_config, mock_gateway, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "app-data", "-o", str(blocker))

        assert result.exit_code == 1
        assert "not a directory" in result.stdout
        mock_gateway.volume_exists.assert_not_called()

    def test_helper_image_from_config(self, cli_runner, tmp_config, mock_gateway, backup_dir):
        mock_gateway.run_container.side_effect = container_writes_archive(backup_dir)

        invoke(cli_runner, tmp_config, mock_gateway, "backup:volumes", "app-data", "-o", str(backup_dir))

        assert "alpine:3.20" in mock_gateway.run_container.call_args.args[0]


@pytest.mark.unit
class TestBackupImagesCommand:
    """Tests for backup:images."""

    def test_requires_references(self, cli_runner, tmp_config, mock_gateway):
        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:images")

        assert result.exit_code == 1
        assert "at least one image name or ID" in result.stdout

    def test_list_images(self, cli_runner, tmp_config, mock_gateway):
        mock_gateway.list_images.return_value = [
            DockerImageInfo.from_docker_json({"ID": "sha256:0123456789abcdef", "Repository": "redis", "Tag": "7"})
        ]

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:images", "--list")

        assert result.exit_code == 0
        assert "redis:7" in result.stdout

    def test_list_without_images(self, cli_runner, tmp_config, mock_gateway):
        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:images", "--list")

        assert result.exit_code == 0
        assert "No Docker images found." in result.stdout

    def test_backup_image(self, cli_runner, tmp_config, mock_gateway, backup_dir):
        def fake_save(reference, output_path):
            Path(output_path).write_bytes(b"image" * 100)
            return ProcessResult(["docker", "save"], 0)

        mock_gateway.save_image.side_effect = fake_save

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:images", "nginx:latest", "-o", str(backup_dir))

        assert result.exit_code == 0
        assert "gzipped" in result.stdout
        assert "All backups completed successfully!" in result.stdout
        assert [p.name for p in backup_dir.iterdir()] == ["nginx_latest.tar.gz"]

    def test_missing_image(self, cli_runner, tmp_config, mock_gateway, backup_dir):
        mock_gateway.image_exists.return_value = False

        result = invoke(cli_runner, tmp_config, mock_gateway, "backup:images", "ghost:1", "-o", str(backup_dir))

        assert result.exit_code == 1
        assert "Image 'ghost:1' not found" in result.stdout
