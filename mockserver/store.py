import asyncio
import logging
import os
import tempfile
from pathlib import Path

from .config import Settings

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    pass


class SettingsStore:
    """
    File-backed settings persistence.

    The file is read once at startup and rewritten in full after every
    accepted admin update. Writes go to a temp file in the same directory and
    are moved over the old file, so a failed write leaves the previous file
    intact.
    """
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Settings:
        logger.info('Loading settings from %s', self.path)
        return Settings.model_validate_json(self.path.read_text(encoding='utf-8'))

    async def save(self, settings: Settings) -> None:
        data = settings.model_dump_json(indent=2)
        try:
            await asyncio.to_thread(self._write, data)
        except OSError as exc:
            logger.error('Failed to write settings to %s: %s', self.path, exc)
            raise PersistenceError(str(exc)) from exc
        logger.info('Wrote %d endpoints to %s', len(settings.endpoints), self.path)

    def _write(self, data: str) -> None:
        fd, tmp = tempfile.mkstemp(
            dir=self.path.parent, prefix=f'.{self.path.name}.', suffix='.tmp'
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(data)
            os.replace(tmp, self.path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise
