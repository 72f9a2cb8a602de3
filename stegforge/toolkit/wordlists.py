"""Wordlist management for the brute-force tools (stegseek)."""
import gzip
import logging
import shutil
import threading
from pathlib import Path
from typing import Optional, Sequence

import httpx

from stegforge.base.config import get_config

logger = logging.getLogger(__name__)

ROCKYOU_URL = "https://github.com/brannondorsey/naive-hashcat/releases/download/data/rockyou.txt"


class RockyouManager:
    """
    Locates or materializes rockyou.txt.
    Strategy:
    1. Check System Paths (Kali/Debian, SecLists)
    2. Check the local data dir (~/.stegforge/wordlists/rockyou.txt)
    3. Decompress a system rockyou.txt.gz into the local data dir
    4. Download into the local data dir
    """

    SYSTEM_PATHS: Sequence[str] = (
        "/usr/share/wordlists/rockyou.txt",
        "/usr/share/seclists/Passwords/Leaked-Databases/rockyou.txt",
    )

    COMPRESSED_PATHS: Sequence[str] = (
        "/usr/share/wordlists/rockyou.txt.gz",
    )

    # Shared by every instance: stegseek and stegseek-audio build concurrently
    # and would otherwise both write rockyou.part
    _lock = threading.Lock()

    def __init__(self, local_dir: Optional[Path] = None, url: str = ROCKYOU_URL, timeout: float = 120.0):
        self.local_dir = Path(local_dir) if local_dir else get_config().storage.wordlists_path
        self.url = url
        self.timeout = timeout

    @property
    def local_path(self) -> Path:
        return self.local_dir / "rockyou.txt"

    def locate(self) -> Optional[Path]:
        """Return an existing rockyou.txt without touching disk or network."""
        for path_str in self.SYSTEM_PATHS:
            p = Path(path_str)
            if p.is_file():
                return p
        if self.local_path.is_file():
            return self.local_path
        return None

    def ensure(self) -> Optional[Path]:
        """
        Return a usable rockyou.txt, extracting or downloading it if needed.

        Thread-safe: concurrent callers wait for the first one to finish and
        then pick up its copy.
        """
        with self._lock:
            found = self.locate()
            if found:
                return found

            for path_str in self.COMPRESSED_PATHS:
                gz = Path(path_str)
                if gz.is_file():
                    extracted = self._decompress(gz)
                    if extracted:
                        return extracted

            return self._download()

    def _decompress(self, gz: Path) -> Optional[Path]:
        logger.info(f"Found compressed wordlist at {gz}, extracting to {self.local_path}")
        try:
            self.local_dir.mkdir(parents=True, exist_ok=True)
            with gzip.open(gz, "rb") as src, open(self.local_path, "wb") as dst:
                shutil.copyfileobj(src, dst)
            return self.local_path
        except (OSError, EOFError) as e:
            logger.warning(f"Failed to extract {gz}: {e}")
            self.local_path.unlink(missing_ok=True)
            return None

    def _download(self) -> Optional[Path]:
        logger.info(f"Downloading rockyou.txt from {self.url}")
        try:
            self.local_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot create wordlist directory {self.local_dir}: {e}")
            return None

        partial = self.local_path.with_suffix(".part")
        try:
            with httpx.stream("GET", self.url, follow_redirects=True, timeout=self.timeout) as resp:
                resp.raise_for_status()
                with open(partial, "wb") as out:
                    for chunk in resp.iter_bytes():
                        out.write(chunk)
            partial.replace(self.local_path)
        except (httpx.HTTPError, OSError) as e:
            logger.warning(f"Cannot download rockyou.txt: {e}")
            partial.unlink(missing_ok=True)
            return None

        logger.info(f"Downloaded rockyou.txt to {self.local_path}")
        return self.local_path
