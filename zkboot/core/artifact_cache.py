"""
Content-addressed cache for the precompiled recursion circuit.

Resolution order:
1. the cached copy in the build output dir, if its digest matches
2. a local source copy, if its digest matches
3. a download from the artifact bucket, verified while streaming

Nothing is returned unless its SHA-256 equals the expected digest.
"""

import hashlib
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import requests

from .config import ArtifactSettings
from .digest import Digest, file_digest
from .errors import AvailabilityError, IntegrityError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class Artifact:
    name: str
    path: Path
    digest: Digest

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


class ArtifactCache:
    """Fetch-or-reuse of a single named artifact"""

    def __init__(self, settings: Optional[ArtifactSettings] = None,
                 session: Optional[requests.Session] = None,
                 timeout: int = 600):
        self.settings = settings or ArtifactSettings()
        self.session = session
        self.timeout = timeout

    def url_for(self, expected_digest: str) -> str:
        return f"{self.settings.url_base}/{expected_digest}.zip"

    def obtain(self, expected_digest: str, preferred_local_path: Optional[PathLike],
               cache_dir: PathLike) -> Optional[Artifact]:
        """
        Return a verified artifact, or None for documentation builds.

        Raises IntegrityError when the downloaded bytes do not match and
        AvailabilityError when the download itself fails.
        """
        if self.settings.docs_build:
            logger.info("documentation build, skipping %s", self.settings.filename)
            return None

        expected = Digest.from_hex(expected_digest)
        cache_dir = Path(cache_dir)
        cache_dir.mkdir(parents=True, exist_ok=True)
        out_path = cache_dir / self.settings.filename

        if out_path.exists():
            if file_digest(out_path) == expected:
                logger.info("using cached %s", out_path)
                return self._artifact(out_path, expected)
            logger.warning("removing stale %s", out_path)
            out_path.unlink()

        if preferred_local_path is not None:
            src_path = Path(preferred_local_path)
            if src_path.exists() and file_digest(src_path) == expected:
                logger.info("copying %s to %s", src_path, out_path)
                shutil.copyfile(src_path, out_path)
                return self._artifact(out_path, expected)

        self._download(self.url_for(expected.hex()), out_path, expected)
        return self._artifact(out_path, expected)

    def obtain_default(self) -> Optional[Artifact]:
        """obtain() driven entirely by the settings"""
        if self.settings.out_dir is None and not self.settings.docs_build:
            raise AvailabilityError("no cache directory configured (OUT_DIR is not set)")
        return self.obtain(self.settings.sha256, self.settings.src_path,
                           self.settings.out_dir or Path("."))

    def _artifact(self, path: Path, digest: Digest) -> Artifact:
        return Artifact(name=self.settings.filename, path=path, digest=digest)

    def _download(self, url: str, out_path: Path, expected: Digest) -> None:
        logger.info("Downloading %s", url)
        part_path = out_path.with_name(out_path.name + ".part")
        h = hashlib.sha256()
        try:
            if self.session is not None:
                self._stream(self.session, url, part_path, h)
            else:
                with requests.Session() as session:
                    self._stream(session, url, part_path, h)
        except requests.RequestException as e:
            _remove(part_path)
            raise AvailabilityError(f"failed to download {url}: {e}") from e

        actual = h.hexdigest()
        if actual != expected.hex():
            _remove(part_path)
            raise IntegrityError(url, expected.hex(), actual)

        os.replace(part_path, out_path)
        logger.info("downloaded %s (%d bytes)", out_path, out_path.stat().st_size)

    def _stream(self, session: requests.Session, url: str, part_path: Path, h) -> None:
        with session.get(url, stream=True, timeout=self.timeout) as r:
            r.raise_for_status()
            with part_path.open('wb') as f:
                for chunk in r.iter_content(chunk_size=1024 * 1024):
                    if chunk:
                        h.update(chunk)
                        f.write(chunk)


def _remove(path: Path) -> None:
    if path.exists():
        path.unlink()
