"""
L4 Execution — Download, extraction and binary deployment.

Release archives are downloaded into a scoped temporary directory that
is removed on every exit path, extracted, searched for the executable,
and the executable is copied into place with mode 0755.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
import urllib.request
import zipfile
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from hostprep.core.errors import ArchiveError, ResolutionError
from hostprep.core.models.lifecycle import Release
from hostprep.core.services.provision.data.constants import USER_AGENT

logger = logging.getLogger(__name__)

BINARY_MODE = 0o755

# download(url, dest)
Downloader = Callable[[str, Path], None]


@contextmanager
def scoped_workdir(prefix: str = "hostprep-") -> Iterator[Path]:
    """Yield a temporary directory that is removed however the block exits."""
    with tempfile.TemporaryDirectory(prefix=prefix) as tmp:
        logger.debug("Created work dir %s", tmp)
        yield Path(tmp)
    logger.debug("Removed work dir %s", tmp)


def download_file(url: str, dest: Path, *, timeout: int = 60) -> None:
    """Stream ``url`` into ``dest``.

    Raises:
        ResolutionError: On any network or HTTP failure.
    """
    logger.info("Downloading %s", url)
    try:
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        with urllib.request.urlopen(req, timeout=timeout) as resp, open(dest, "wb") as f:
            shutil.copyfileobj(resp, f, length=64 * 1024)
    except OSError as exc:
        raise ResolutionError(f"Download failed: {url}: {exc}") from exc

    if dest.stat().st_size == 0:
        raise ResolutionError(f"Download failed: {url} returned an empty body")


def _safe_zip_members(zf: zipfile.ZipFile, dest: Path) -> list[str]:
    root = dest.resolve()
    names = []
    for name in zf.namelist():
        target = (dest / name).resolve()
        if target != root and root not in target.parents:
            raise ArchiveError(f"Archive member escapes extraction dir: {name}")
        names.append(name)
    return names


def extract_archive(archive: Path, dest: Path, *, raw_name: str | None = None) -> None:
    """Extract ``archive`` into ``dest``.

    ``.tar.gz``/``.tgz``/``.tar.xz``/``.tar`` and ``.zip`` are unpacked;
    anything else is treated as a bare executable and copied as
    ``raw_name`` (default: the archive's own name).

    Raises:
        ArchiveError: If the archive is corrupt or unsafe.
    """
    dest.mkdir(parents=True, exist_ok=True)
    name = archive.name.lower()

    try:
        if name.endswith((".tar.gz", ".tgz", ".tar.xz", ".txz", ".tar.bz2", ".tar")):
            with tarfile.open(archive, "r:*") as tf:
                tf.extractall(dest, filter="data")
        elif name.endswith(".zip"):
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(dest, members=_safe_zip_members(zf, dest))
        else:
            shutil.copy2(archive, dest / (raw_name or archive.name))
    except (tarfile.TarError, zipfile.BadZipFile, OSError) as exc:
        raise ArchiveError(f"Cannot extract {archive.name}: {exc}") from exc


def locate_binary(tree: Path, name: str) -> Path:
    """Find the executable called ``name`` inside an extracted tree.

    Preference: ``<name>-*/<name>`` (release dir), ``*/bin/<name>``,
    ``<tree>/<name>``, then any regular file called ``name``.

    Raises:
        ArchiveError: If no such file exists.
    """
    candidates = [p for p in sorted(tree.rglob(name)) if p.is_file() and not p.is_symlink()]

    def rank(p: Path) -> int:
        parent = p.parent
        if parent.name.startswith(f"{name}-"):
            return 0
        if parent.name == "bin":
            return 1
        if parent == tree:
            return 2
        return 3

    if not candidates:
        available = [str(p.relative_to(tree)) for p in tree.rglob("*") if p.is_file()]
        logger.debug("Archive contents: %s", available[:20])
        raise ArchiveError(f"Extraction failed: '{name}' not found in the release archive")

    return min(candidates, key=rank)


def place_binary(binary: Path, target: Path) -> Path:
    """Copy ``binary`` to ``target`` with mode 0755.

    The copy lands in a temp file next to ``target`` and is renamed
    over it, so replacing an executable that is currently running
    does not fail with "text file busy".
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".new")
    os.close(fd)
    tmp = Path(tmp_path)
    try:
        shutil.copyfile(binary, tmp)
        os.chmod(tmp, BINARY_MODE)
        tmp.replace(target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    logger.info("Installed %s", target)
    return target


class BinaryDeployer:
    """Fetches a release binary and copies it to one or more targets.

    Args:
        timeout: Download timeout in seconds.
        downloader: Transport override, mainly for tests.
    """

    def __init__(self, *, timeout: int = 60, downloader: Downloader | None = None) -> None:
        self.timeout = timeout
        self._download = downloader or (lambda url, dest: download_file(url, dest, timeout=timeout))

    def download(self, url: str, dest: Path) -> None:
        self._download(url, dest)

    @contextmanager
    def fetch(self, release: Release, binary_name: str) -> Iterator[Path]:
        """Yield the extracted executable; its work dir dies with the block."""
        asset_name = release.asset_name or release.url.rsplit("/", 1)[-1]
        with scoped_workdir() as work:
            archive = work / asset_name
            self.download(release.url, archive)

            extracted = work / "extracted"
            extract_archive(archive, extracted, raw_name=binary_name)
            yield locate_binary(extracted, binary_name)

    def place(self, binary: Path, target: Path) -> Path:
        return place_binary(binary, target)

    def deploy(self, release: Release, binary_name: str, targets: Iterable[Path]) -> list[Path]:
        """Download once, then place the binary at every target."""
        targets = list(targets)
        with self.fetch(release, binary_name) as binary:
            return [self.place(binary, target) for target in targets]
