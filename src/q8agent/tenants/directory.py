# src/q8agent/tenants/directory.py
"""
On-disk state for tenants.

Each tenant owns exactly one active directory, ``<root>/<subdomain>``,
holding its compose file and environment file. Teardown archives the
directory by renaming it to ``<root>/<subdomain>-<uuid4>`` so the same
subdomain can be provisioned again straight away while its previous
configuration is kept.

All methods are synchronous; async callers run them in a worker thread.
"""

import logging
import os
import re
import shutil
import uuid
from pathlib import Path
from typing import List, Optional

from ..exceptions import TenantDirectoryError
from ..models import validate_subdomain

logger = logging.getLogger(__name__)

COMPOSE_FILENAME = "docker-compose.yml"
ENV_FILENAME = ".env"

DIR_MODE = 0o755
FILE_MODE = 0o644

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def encode_content(content: str) -> bytes:
    """UTF-8 bytes of ``content`` with any unpaired surrogate replaced by U+FFFD."""
    return _LONE_SURROGATE.sub("\ufffd", content).encode("utf-8")


class TenantDirectoryManager:
    """
    Owns the tenants root and every tenant directory beneath it.

    Attributes:
        root: Directory under which tenant directories live
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def get_path(self, subdomain: str) -> Path:
        """
        Path of the active directory for a subdomain.

        Raises:
            InvalidSubdomainError: If the subdomain is not a valid tenant key
        """
        return self.root / validate_subdomain(subdomain)

    def exists(self, subdomain: str) -> bool:
        """Whether the subdomain currently has an active directory."""
        return self.get_path(subdomain).is_dir()

    def prepare(self, subdomain: str) -> Path:
        """
        Ensure the tenant directory exists, creating parents as needed.

        Returns:
            The tenant directory path

        Raises:
            TenantDirectoryError: On filesystem errors (permissions, disk full)
        """
        path = self.get_path(subdomain)
        try:
            path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise TenantDirectoryError(
                f"failed to create tenant directory: {e}", path=str(path), operation="prepare"
            ) from e
        return path

    def write_config(self, subdomain: str, compose_content: str, env_content: str) -> None:
        """
        Overwrite the compose and environment files of a prepared directory.

        Content is written as UTF-8 exactly as given, except that unpaired
        surrogates (which JSON escapes can carry but UTF-8 cannot encode)
        are replaced with U+FFFD. The directory is not created here;
        ``prepare`` must have run first.

        Raises:
            TenantDirectoryError: If either file cannot be written
        """
        path = self.get_path(subdomain)
        for filename, content in ((COMPOSE_FILENAME, compose_content), (ENV_FILENAME, env_content)):
            target = path / filename
            try:
                with open(target, "wb") as f:
                    f.write(encode_content(content))
                os.chmod(target, FILE_MODE)
            except OSError as e:
                raise TenantDirectoryError(
                    f"failed to write {filename}: {e}", path=str(target), operation="write"
                ) from e

    def archive(self, subdomain: str) -> Optional[str]:
        """
        Rename the tenant directory to ``<subdomain>-<uuid4>``.

        Returns:
            The new directory name, or None if there was nothing to archive

        Raises:
            TenantDirectoryError: If the rename fails; the original directory
                is left in place
        """
        old_path = self.get_path(subdomain)
        if not old_path.exists():
            return None

        new_name = f"{subdomain}-{uuid.uuid4()}"
        new_path = self.root / new_name
        try:
            os.rename(old_path, new_path)
        except OSError as e:
            raise TenantDirectoryError(
                f"failed to archive directory: {e}", path=str(old_path), operation="archive"
            ) from e

        logger.debug(f"Renamed {old_path} to {new_path}")
        return new_name

    def remove(self, subdomain: str) -> None:
        """
        Recursively delete the tenant directory. A missing directory is not an error.

        Raises:
            TenantDirectoryError: If deletion fails
        """
        path = self.get_path(subdomain)
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise TenantDirectoryError(
                f"failed to remove tenant directory: {e}", path=str(path), operation="remove"
            ) from e

    def list_archives(self, subdomain: str) -> List[str]:
        """Names of archived directories for a subdomain, sorted."""
        validate_subdomain(subdomain)
        if not self.root.is_dir():
            return []

        prefix = f"{subdomain}-"
        archives = []
        for entry in self.root.iterdir():
            if not entry.is_dir() or not entry.name.startswith(prefix):
                continue
            try:
                uuid.UUID(entry.name[len(prefix):])
            except ValueError:
                continue
            archives.append(entry.name)
        return sorted(archives)
