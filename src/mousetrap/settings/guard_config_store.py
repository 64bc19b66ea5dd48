"""
Persistent per-guild mousetrap configuration.

Provides a small transactional API over one JSON file:
- get(guild_id) / status(guild_id): latest committed GuildGuardConfig or None
- set_trap / clear_trap: arm or disarm a guild (clearing also drops the log)
- set_log / clear_log: manage the audit log channel of an armed guild

The parsed file is cached in memory. Every read compares the file's
modification stamp with the cached one, so hand edits and writes from other
processes are picked up without re-parsing the file on every message.

Mutations run one at a time (single writer). Each one re-validates against
the file, computes the new guild entry, writes the whole document to a
temporary file and atomically replaces the original. The replace happens
under an exclusive lock on a sidecar file; if the file changed since the
snapshot was built, the mutation is recomputed on top of the new contents
instead of overwriting them. The cache only changes after the replace
succeeded, so a failed write never loses committed state.
"""
from __future__ import annotations

import asyncio
import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, TypeVar

from mousetrap.datatypes.discord_datatypes import ChannelID, GuildID
from mousetrap.datatypes.guard_config import GuildGuardConfig
from mousetrap.util.errors import ConfigIOError
from mousetrap.util.logger import get_logger

logger = get_logger("guard_config_store")

FileStamp = Tuple[int, int]
T = TypeVar("T")
Mutation = Callable[[Optional[GuildGuardConfig]], Tuple[Optional[GuildGuardConfig], T]]
LogChange = Tuple[bool, Optional[GuildGuardConfig]]

# Attempts to commit a mutation while the file keeps changing underneath
MAX_WRITE_ATTEMPTS = 3


class _StaleSnapshot(Exception):
    """The file changed between building a snapshot and locking it for the write."""


class GuardConfigStore:
    """
    Owner of the mousetrap configuration file.

    Only this class reads or writes the file; everything else goes through
    its methods so there is one persistence format and one point of
    serialization.
    """

    def __init__(self, config_path: Path | str) -> None:
        self.config_path = Path(config_path)
        self._lock_path = self.config_path.with_name(self.config_path.name + ".lock")
        self._configs: Dict[GuildID, GuildGuardConfig] = {}
        self._stamp: Optional[FileStamp] = None
        self._loaded = False
        self._failed_stamp: Optional[FileStamp] = None
        self._healthy = True
        self._write_lock = asyncio.Lock()

        logger.info("[CONFIG STORE] Using %s", self.config_path)

    # ========== Read API ==========

    def get(self, guild_id: GuildID) -> Optional[GuildGuardConfig]:
        """
        Return the latest committed configuration for a guild.

        Missing guilds yield None. An unreadable or corrupt file is logged
        once per file version and also yields None, so the guard stays off
        instead of guarding the wrong channel.
        """
        try:
            self._refresh()
        except ConfigIOError as exc:
            logger.error("[CONFIG STORE] Guard disabled, configuration unreadable: %s", exc)
            return None
        if not self._healthy:
            return None
        return self._configs.get(GuildID(guild_id))

    def status(self, guild_id: GuildID) -> Optional[GuildGuardConfig]:
        """Read-only projection used for reporting."""
        return self.get(guild_id)

    def all_configs(self) -> Dict[GuildID, GuildGuardConfig]:
        """Snapshot of every armed guild (empty when the file is unreadable)."""
        try:
            self._refresh()
        except ConfigIOError as exc:
            logger.error("[CONFIG STORE] Configuration unreadable: %s", exc)
            return {}
        return dict(self._configs) if self._healthy else {}

    # ========== Mutations ==========

    async def set_trap(self, guild_id: GuildID, channel_id: ChannelID) -> GuildGuardConfig:
        """Create or move the trap, keeping any log channel already set."""
        channel_id = ChannelID(channel_id)

        def mutation(current: Optional[GuildGuardConfig]):
            updated = current.with_trap(channel_id) if current else GuildGuardConfig(trap_channel_id=channel_id)
            return updated, updated

        return await self._mutate(guild_id, mutation)

    async def clear_trap(self, guild_id: GuildID) -> bool:
        """Remove the whole entry (trap and log). Returns whether one existed."""

        def mutation(current: Optional[GuildGuardConfig]):
            return None, current is not None

        return await self._mutate(guild_id, mutation)

    async def set_log(self, guild_id: GuildID, channel_id: ChannelID) -> bool:
        """Set the audit log channel. Returns False when no trap is configured."""
        changed, _ = await self.set_log_config(guild_id, channel_id)
        return changed

    async def clear_log(self, guild_id: GuildID) -> bool:
        """Remove only the audit log channel. Returns whether one was set."""
        removed, _ = await self.clear_log_config(guild_id)
        return removed

    async def set_log_config(self, guild_id: GuildID, channel_id: ChannelID) -> LogChange:
        """
        Like set_log, but also return the configuration committed by this call.

        The configuration is taken inside the write transaction, so a
        concurrent clear_trap cannot slip in between the change and the
        value reported for it.
        """
        channel_id = ChannelID(channel_id)

        def mutation(current: Optional[GuildGuardConfig]):
            if current is None:
                return None, (False, None)
            updated = current.with_log(channel_id)
            return updated, (True, updated)

        return await self._mutate(guild_id, mutation)

    async def clear_log_config(self, guild_id: GuildID) -> LogChange:
        """Like clear_log, but also return the configuration left in place."""

        def mutation(current: Optional[GuildGuardConfig]):
            if current is None or current.log_channel_id is None:
                return current, (False, current)
            updated = current.with_log(None)
            return updated, (True, updated)

        return await self._mutate(guild_id, mutation)

    # ========== Private Methods ==========

    async def _mutate(self, guild_id: GuildID, mutation: Mutation[T]) -> T:
        guild_id = GuildID(guild_id)
        async with self._write_lock:
            for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
                # Refuse to build on top of a file we cannot read; overwriting it
                # would throw away whatever is in there.
                self._refresh()
                if not self._healthy:
                    raise ConfigIOError(f"configuration file {self.config_path} is unreadable", path=self.config_path)

                base_stamp = self._stamp
                current = self._configs.get(guild_id)
                updated, result = mutation(current)
                if updated == current:
                    logger.debug("[CONFIG STORE] No change for guild %s", guild_id)
                    return result

                snapshot = dict(self._configs)
                if updated is None:
                    snapshot.pop(guild_id, None)
                else:
                    snapshot[guild_id] = updated

                try:
                    stamp = await asyncio.to_thread(self._write_to_disk, snapshot, base_stamp)
                except _StaleSnapshot:
                    logger.info(
                        "[CONFIG STORE] %s changed during update of guild %s (attempt %d), re-reading",
                        self.config_path,
                        guild_id,
                        attempt,
                    )
                    continue

                self._configs = snapshot
                self._stamp = stamp
                self._loaded = True
                logger.info("[CONFIG STORE] Guild %s updated: %s", guild_id, updated.to_record() if updated else "removed")
                return result

        raise ConfigIOError(
            f"{self.config_path} kept changing during the update, giving up after {MAX_WRITE_ATTEMPTS} attempts",
            path=self.config_path,
        )

    def _file_stamp(self) -> Optional[FileStamp]:
        try:
            stat = self.config_path.stat()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ConfigIOError(f"cannot stat {self.config_path}: {exc}", path=self.config_path) from exc
        return stat.st_mtime_ns, stat.st_size

    def _refresh(self) -> None:
        """Reload the cache if the file changed since it was last read."""
        stamp = self._file_stamp()
        if self._loaded and stamp == self._stamp:
            self._healthy = True
            return
        if stamp is not None and stamp == self._failed_stamp:
            # Same broken file as last time; already reported.
            self._healthy = False
            return

        try:
            configs = self._read_from_disk()
        except ConfigIOError:
            self._failed_stamp = stamp
            self._healthy = False
            raise

        self._configs = configs
        self._stamp = stamp
        self._loaded = True
        self._healthy = True
        self._failed_stamp = None
        logger.debug("[CONFIG STORE] Loaded %d guild configuration(s)", len(configs))

    def _read_from_disk(self) -> Dict[GuildID, GuildGuardConfig]:
        try:
            raw_text = self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigIOError(f"cannot read {self.config_path}: {exc}", path=self.config_path) from exc

        if not raw_text.strip():
            return {}

        try:
            raw = json.loads(raw_text)
        except json.JSONDecodeError as exc:
            raise ConfigIOError(f"invalid JSON in {self.config_path}: {exc}", path=self.config_path) from exc

        if not isinstance(raw, dict):
            raise ConfigIOError(
                f"{self.config_path} must contain an object, got {type(raw).__name__}",
                path=self.config_path,
            )

        configs: Dict[GuildID, GuildGuardConfig] = {}
        for raw_guild_id, record in raw.items():
            try:
                configs[GuildID(raw_guild_id)] = GuildGuardConfig.from_record(record)
            except ValueError as exc:
                logger.warning("[CONFIG STORE] Skipping invalid entry for guild %r: %s", raw_guild_id, exc)
        return configs

    def _write_to_disk(
        self, configs: Dict[GuildID, GuildGuardConfig], base_stamp: Optional[FileStamp]
    ) -> Optional[FileStamp]:
        """
        Atomically replace the file with ``configs``. Runs in a worker thread.

        ``base_stamp`` is the stamp of the file ``configs`` was derived from.
        If the file no longer carries it once the lock is held, nothing is
        written and _StaleSnapshot is raised so the caller can start over.
        """
        document = {
            str(guild_id): config.to_record()
            for guild_id, config in sorted(configs.items(), key=lambda item: item[0].to_int())
        }
        try:
            payload = json.dumps(document, indent=2) + "\n"
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._lock_path, "a", encoding="utf-8") as lock_file:
                # Writers that use this lock replace the file one at a time.
                # Hand edits bypass it and are caught by the stamp check.
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                try:
                    if self._file_stamp() != base_stamp:
                        raise _StaleSnapshot()
                    fd, tmp_name = tempfile.mkstemp(
                        prefix=f".{self.config_path.name}.", suffix=".tmp", dir=self.config_path.parent
                    )
                    try:
                        with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                            tmp_file.write(payload)
                            tmp_file.flush()
                            os.fsync(tmp_file.fileno())
                        os.replace(tmp_name, self.config_path)
                    except BaseException:
                        Path(tmp_name).unlink(missing_ok=True)
                        raise
                    return self._file_stamp()
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("[CONFIG STORE] Failed to write %s: %s", self.config_path, exc)
            raise ConfigIOError(f"cannot write {self.config_path}: {exc}", path=self.config_path) from exc
