"""
Podman Client

Handles low-level podman operations that extract a catalog's configs tree
from a container image.
"""

import logging
import shutil
import subprocess
import tempfile
import time
from pathlib import Path
from typing import List, Optional

from ..core.constants import CatalogConstants, ErrorMessages, FileConstants, NetworkConstants
from ..core.exceptions import CatalogError, FetchError
from ..core.utils import validate_image_url

logger = logging.getLogger(__name__)


class PodmanClient:
    """Low-level client for podman image extraction"""

    def __init__(self, skip_tls: bool = False, podman_binary: Optional[str] = None):
        """
        Initialize podman client

        Args:
            skip_tls: Whether to skip TLS verification on pull
            podman_binary: Explicit podman path (default: discovered from PATH)
        """
        self.skip_tls = skip_tls
        self._podman_binary = podman_binary

        # Extraction directories created by this client, removed by release()
        self._temp_dirs: List[Path] = []

    def _find_podman_binary(self) -> str:
        """
        Find podman binary in system PATH

        Returns:
            str: Path to podman binary

        Raises:
            FetchError: If podman binary not found
        """
        if self._podman_binary:
            return self._podman_binary

        found = shutil.which('podman')
        if found:
            self._podman_binary = found
            logger.debug(f"Found podman binary at: {self._podman_binary}")
            return self._podman_binary

        for path in ['/usr/local/bin/podman', '/usr/bin/podman']:
            if Path(path).exists():
                self._podman_binary = path
                logger.debug(f"Found podman binary at: {self._podman_binary}")
                return self._podman_binary

        raise FetchError(str(ErrorMessages.FetchError.PODMAN_NOT_FOUND))

    def _run(self, args: List[str], action: str, image: str, timeout: int) -> subprocess.CompletedProcess:
        """
        Run a podman subcommand

        Raises:
            FetchError: If podman times out or cannot be executed
        """
        cmd = [self._find_podman_binary()] + args
        logger.debug(f"Running podman command: {' '.join(cmd)}")

        try:
            return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired:
            raise FetchError(str(ErrorMessages.FetchError.TIMEOUT).format(
                action=action, timeout=timeout, image=image
            ))
        except OSError as e:
            raise FetchError(f"Failed to run podman {action}: {e}")

    def pull_image(self, image: str) -> None:
        """
        Pull an image into local storage

        Raises:
            FetchError: If the pull fails
        """
        validate_image_url(image)

        args = ['pull', image]
        if self.skip_tls:
            args.append('--tls-verify=false')

        logger.info(f"Pulling image: {image}")
        result = self._run(args, 'pull', image, NetworkConstants.IMAGE_PULL_TIMEOUT)
        if result.returncode != 0:
            raise FetchError(str(ErrorMessages.FetchError.PULL_FAILED).format(
                image=image, error=result.stderr.strip()
            ))
        logger.info("Image pulled successfully")

    def fetch_catalog_files(self, image_reference: str, dest: Optional[Path] = None) -> Path:
        """
        Extract the /configs directory of a catalog image

        The image is pulled, a stopped container is created from it and the
        configs tree is copied out. The container is always removed. Failures
        are not retried here.

        Args:
            image_reference: Catalog image reference
            dest: Directory to extract into (default: a new temporary directory)

        Returns:
            Path: The extracted configs directory

        Raises:
            FetchError: If any podman step fails
        """
        self.pull_image(image_reference)

        created = dest is None
        target = Path(dest) if dest else Path(tempfile.mkdtemp(prefix=FileConstants.TEMP_DIR_PREFIX))
        target.mkdir(parents=True, exist_ok=True)

        container_id = None
        try:
            result = self._run(
                ['create', '--name', f"catalog-temp-{int(time.time() * 1000)}", image_reference],
                'create', image_reference, NetworkConstants.DEFAULT_TIMEOUT
            )
            if result.returncode != 0:
                raise FetchError(str(ErrorMessages.FetchError.CREATE_FAILED).format(
                    image=image_reference, error=result.stderr.strip()
                ))
            container_id = result.stdout.strip()
            logger.debug(f"Created container: {container_id}")

            source = f"{container_id}:{CatalogConstants.CONFIGS_PATH_IN_IMAGE}"
            logger.info(f"Extracting {CatalogConstants.CONFIGS_PATH_IN_IMAGE} from {image_reference}")
            result = self._run(
                ['cp', source, str(target)], 'cp', image_reference, NetworkConstants.IMAGE_COPY_TIMEOUT
            )
            if result.returncode != 0:
                raise FetchError(str(ErrorMessages.FetchError.COPY_FAILED).format(
                    path=CatalogConstants.CONFIGS_PATH_IN_IMAGE, image=image_reference,
                    error=result.stderr.strip()
                ))
        except FetchError:
            if created:
                _remove_tree(target)
            raise
        finally:
            if container_id:
                self._remove_container(container_id)

        if created:
            self._temp_dirs.append(target)

        configs_dir = target / CatalogConstants.CONFIGS_DIR
        logger.info(f"Catalog configs extracted to {configs_dir}")
        return configs_dir

    def release(self, configs_dir: Path) -> None:
        """
        Remove an extraction directory once its contents are no longer needed

        Only directories this client created are removed; caller-supplied
        destinations are left alone.
        """
        target = Path(configs_dir).parent
        if target not in self._temp_dirs:
            logger.debug(f"Not releasing {configs_dir}: not a temporary extraction")
            return

        self._temp_dirs.remove(target)
        _remove_tree(target)

    def _remove_container(self, container_id: str) -> None:
        """Remove a temporary container, logging rather than raising on failure"""
        try:
            result = self._run(['rm', '-f', container_id], 'rm', container_id, NetworkConstants.DEFAULT_TIMEOUT)
            if result.returncode == 0:
                logger.debug(f"Container removed: {container_id}")
            else:
                logger.warning(f"Failed to remove container {container_id}: {result.stderr.strip()}")
        except FetchError as e:
            logger.warning(f"Failed to remove container {container_id}: {e}")


class LocalCatalogFetcher:
    """Serves an already extracted catalog directory"""

    def __init__(self, directory):
        self.directory = Path(directory)

    def fetch_catalog_files(self, image_reference: str = None, dest: Optional[Path] = None) -> Path:
        """
        Return the local configs directory

        Accepts either the configs directory itself or its parent.

        Raises:
            CatalogError: If the directory does not exist
        """
        if not self.directory.is_dir():
            raise CatalogError(str(ErrorMessages.CatalogError.CONFIGS_NOT_FOUND).format(path=self.directory))

        nested = self.directory / CatalogConstants.CONFIGS_DIR
        if nested.is_dir():
            return nested
        return self.directory

    def release(self, configs_dir: Path) -> None:
        """Local directories belong to the user and are never removed"""
        return None


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
        logger.debug(f"Removed temporary directory: {path}")
    except OSError as e:
        logger.warning(f"Failed to remove temporary directory {path}: {e}")
