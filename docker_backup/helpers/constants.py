"""
Constants used throughout the docker-backup application.

This module defines all constant values used across different modules
to ensure consistency and ease of maintenance.
"""

from pathlib import Path

# Version information
VERSION = "1.0.0"
APP_NAME = "Docker Backup & Restore CLI Tool"

# Default paths
DEFAULT_CONFIG_PATHS = {
    'root': Path('/etc/docker-backup.conf'),
    'user': Path.home() / '.config' / 'docker-backup' / 'config.conf'
}
DEFAULT_VOLUMES_DIR = './backups/volumes'
DEFAULT_IMAGES_DIR = './backups/images'

# Environment variables
ENV_VOLUMES_DIR = 'BACKUP_DEFAULT_DIR'
ENV_IMAGES_DIR = 'DOCKER_BACKUP_IMAGES_DIR'
ENV_HELPER_IMAGE = 'DOCKER_BACKUP_HELPER_IMAGE'
ENV_DEV_MODE = 'DOCKER_BACKUP_DEV_MODE'
ENV_HOST_PROJECT_DIR = 'HOST_PROJECT_DIR'

# Docker
DOCKER_BINARY = 'docker'
DEFAULT_HELPER_IMAGE = 'alpine'
DOCKER_COMMAND_TIMEOUT = 300  # 5 minutes

# Mount points inside disposable containers
VOLUME_MOUNT = '/volume'
BACKUP_MOUNT = '/backup'

# Dev mode: the project directory is mounted here inside the tool's container
DEFAULT_CONTAINER_ROOT = '/app'

# Archives
COMPRESSED_SUFFIX = '.tar.gz'
PLAIN_SUFFIX = '.tar'
COPY_CHUNK_SIZE = 1024 * 1024  # 1 MiB

# Restore confirmation thresholds
CONFIRM_ARCHIVE_COUNT = 5
LARGE_ARCHIVE_BYTES = 500 * 1024 * 1024

# Logging
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
DEFAULT_LOG_LEVEL = 'WARNING'
