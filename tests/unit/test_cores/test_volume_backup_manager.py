"""
Unit tests for VolumeBackupManager.

The gateway is a Mock; a run_container side effect plays the helper
container and writes the archive into the backup directory.
"""

import logging
import pytest
from pathlib import Path
from unittest.mock import patch

from docker_backup.cores.volume_backup_manager import VolumeBackupManager
from docker_backup.errors import DirectoryError, DockerCommandError
from docker_backup.helpers.path_mapping import PrefixPathMapper
from docker_backup.types import OperationKind, OperationStatus, ProcessResult


def tar_writes_archive(directory, size=1500):
    """run_container side effect: create /backup/<file> with `size` bytes."""
    def _run(args):
        target = next(arg for arg in args if arg.startswith("/backup/"))
        (directory / target[len("/backup/"):]).write_bytes(b"x" * size)
        return ProcessResult(command=["docker", "run"], exit_code=0)
    return _run


@pytest.fixture
def manager(mock_gateway):
    return VolumeBackupManager(mock_gateway, helper_image="alpine")


@pytest.mark.unit
class TestBackupSingleVolume:

    def test_success_records_archive_size(self, manager, mock_gateway, backup_dir):
        mock_gateway.run_container.side_effect = tar_writes_archive(backup_dir)

        outcome = manager.backup_single_volume("app-data", backup_dir)

        assert outcome.status is OperationStatus.SUCCESS
        assert outcome.kind is OperationKind.BACKUP_VOLUME
        assert outcome.resource_name == "app-data"
        assert outcome.archive_path == backup_dir.resolve() / "app-data.tar.gz"
        assert outcome.file_size_bytes == 1500
        assert outcome.duration_seconds >= 0

    def test_tar_container_arguments(self, manager, mock_gateway, backup_dir):
        mock_gateway.run_container.side_effect = tar_writes_archive(backup_dir)

        manager.backup_single_volume("app-data", backup_dir)

        args = mock_gateway.run_container.call_args.args[0]
        assert args == [
            "-v", "app-data:/volume:ro",
            "-v", f"{backup_dir.resolve()}:/backup",
            "alpine",
            "tar", "czf", "/backup/app-data.tar.gz",
            "-C", "/volume", ".",
        ]

    def test_uncompressed(self, manager, mock_gateway, backup_dir):
        mock_gateway.run_container.side_effect = tar_writes_archive(backup_dir)

        outcome = manager.backup_single_volume("app-data", backup_dir, compress=False)

        assert outcome.archive_path.name == "app-data.tar"
        assert "cf" in mock_gateway.run_container.call_args.args[0]

    def test_second_run_is_skipped(self, manager, mock_gateway, backup_dir):
        mock_gateway.run_container.side_effect = tar_writes_archive(backup_dir)

        first = manager.backup_single_volume("app-data", backup_dir)
        second = manager.backup_single_volume("app-data", backup_dir)

        assert first.is_successful
        assert second.status is OperationStatus.SKIPPED
        assert second.message.startswith("File already exists: ")
        assert second.archive_path == first.archive_path
        assert mock_gateway.run_container.call_count == 1
        assert (backup_dir / "app-data.tar.gz").stat().st_size == 1500

    def test_existing_plain_tar_does_not_block_compressed(self, manager, mock_gateway, backup_dir):
        (backup_dir / "app-data.tar").write_bytes(b"old")
        mock_gateway.run_container.side_effect = tar_writes_archive(backup_dir)

        assert manager.backup_single_volume("app-data", backup_dir).is_successful

    def test_missing_volume_never_runs_container(self, manager, mock_gateway, backup_dir):
        mock_gateway.volume_exists.return_value = False

        outcome = manager.backup_single_volume("ghost", backup_dir)

        assert outcome.status is OperationStatus.FAILED
        assert outcome.message == "Volume 'ghost' not found"
        mock_gateway.run_container.assert_not_called()
        assert list(backup_dir.iterdir()) == []

    def test_invalid_name_fails_before_docker(self, manager, mock_gateway, backup_dir):
        outcome = manager.backup_single_volume("bad name", backup_dir)

        assert outcome.is_failed
        assert "bad name" in outcome.message
        mock_gateway.volume_exists.assert_not_called()

    def test_tar_failure(self, manager, mock_gateway, backup_dir, process_result):
        mock_gateway.run_container.return_value = process_result(exit_code=2, stderr="tar: write error\n")

        outcome = manager.backup_single_volume("app-data", backup_dir)

        assert outcome.is_failed
        assert outcome.message == "Failed to create backup archive: tar: write error"

    def test_tar_failure_removes_partial_archive(self, manager, mock_gateway, backup_dir):
        write = tar_writes_archive(backup_dir, size=700)

        def _half_written(args):
            write(args)
            return ProcessResult(command=["docker", "run"], exit_code=1, stderr="No space left on device")

        mock_gateway.run_container.side_effect = _half_written
        failed = manager.backup_single_volume("app-data", backup_dir)

        assert failed.is_failed
        assert not (backup_dir / "app-data.tar.gz").exists()

        mock_gateway.run_container.side_effect = tar_writes_archive(backup_dir)
        retried = manager.backup_single_volume("app-data", backup_dir)

        assert retried.status is OperationStatus.SUCCESS
        assert retried.file_size_bytes == 1500

    def test_undeletable_partial_archive_still_fails(self, manager, mock_gateway, backup_dir, caplog):
        write = tar_writes_archive(backup_dir)

        def _half_written(args):
            write(args)
            return ProcessResult(command=["docker", "run"], exit_code=1, stderr="killed")

        mock_gateway.run_container.side_effect = _half_written

        with caplog.at_level(logging.WARNING, logger="docker_backup"), \
                patch.object(Path, "unlink", side_effect=PermissionError("Operation not permitted")):
            outcome = manager.backup_single_volume("app-data", backup_dir)

        assert outcome.is_failed
        assert outcome.message == "Failed to create backup archive: killed"
        assert "Could not remove partial archive" in caplog.text

    def test_container_success_without_file(self, manager, backup_dir):
        outcome = manager.backup_single_volume("app-data", backup_dir)

        assert outcome.is_failed
        assert outcome.message.startswith("Backup archive was not created: ")

    def test_docker_error_becomes_failed(self, manager, mock_gateway, backup_dir):
        mock_gateway.run_container.side_effect = DockerCommandError("Docker command timed out after 300s: docker run")

        outcome = manager.backup_single_volume("app-data", backup_dir)

        assert outcome.is_failed
        assert "timed out" in outcome.message

    def test_unexpected_error_becomes_failed(self, manager, mock_gateway, backup_dir):
        mock_gateway.volume_exists.side_effect = RuntimeError("boom")

        outcome = manager.backup_single_volume("app-data", backup_dir)

        assert outcome.is_failed
        assert outcome.message == "Unexpected error: boom"

    def test_host_path_mapping(self, mock_gateway, backup_dir):
        mapper = PrefixPathMapper("/home/dev/project", str(backup_dir.resolve().parent))
        manager = VolumeBackupManager(mock_gateway, mapper)
        mock_gateway.run_container.side_effect = tar_writes_archive(backup_dir)

        manager.backup_single_volume("app-data", backup_dir)

        args = mock_gateway.run_container.call_args.args[0]
        assert args[3] == "/home/dev/project/backups:/backup"


@pytest.mark.unit
class TestBackupVolumes:

    def test_batch_continues_after_failure(self, manager, mock_gateway, backup_dir):
        mock_gateway.volume_exists.side_effect = lambda name: name != "missing"
        mock_gateway.run_container.side_effect = tar_writes_archive(backup_dir)
        seen = []

        outcomes = manager.backup_volumes(
            ["app-data", "missing", "db"],
            backup_dir,
            on_outcome=lambda index, outcome: seen.append((index, outcome.resource_name)),
        )

        assert [o.status for o in outcomes] == [
            OperationStatus.SUCCESS,
            OperationStatus.FAILED,
            OperationStatus.SUCCESS,
        ]
        assert seen == [(1, "app-data"), (2, "missing"), (3, "db")]
        assert sorted(p.name for p in backup_dir.iterdir()) == ["app-data.tar.gz", "db.tar.gz"]

    def test_creates_missing_directory(self, manager, mock_gateway, tmp_path):
        target = tmp_path / "nested" / "volumes"
        mock_gateway.run_container.side_effect = tar_writes_archive(target)

        outcomes = manager.backup_volumes(["app-data"], target)

        assert target.is_dir()
        assert outcomes[0].is_successful

    def test_unusable_directory_raises(self, manager, mock_gateway, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(DirectoryError):
            manager.backup_volumes(["app-data"], blocker)

        mock_gateway.volume_exists.assert_not_called()

    def test_empty_batch(self, manager, backup_dir):
        assert manager.backup_volumes([], backup_dir) == []

    def test_list_available_volumes(self, manager, mock_gateway):
        mock_gateway.list_volumes.return_value = ["sentinel"]
        assert manager.list_available_volumes() == ["sentinel"]
