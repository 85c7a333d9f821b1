"""
Channel tree discovery and lookup.

The tree is built once at startup from the configured log roots and never
mutated afterwards, so every ask session can read it without locking.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from irclogs.core.constants import CHANNEL_PREFIX
from irclogs.core.exceptions import ChannelError, LogNotFoundError
from irclogs.utils.log_files import date_from_filename, list_dates, read_log_file, resolve_log_path, split_lines
from irclogs.utils.logger import logger


@dataclass(frozen=True, slots=True)
class Channel:
    """A channel and the directories (one per log root) that hold its logs."""

    path_segments: tuple[str, ...]
    dirs: tuple[Path, ...]

    @property
    def name(self) -> str:
        return self.path_segments[-1]

    @property
    def path(self) -> str:
        return "/".join(self.path_segments)

    @property
    def is_public(self) -> bool:
        """Only ``#`` channels are searchable; private query logs are not."""
        return self.name.startswith(CHANNEL_PREFIX)

    def dates(self) -> list[str]:
        """Sorted union of dates across all of the channel's directories."""
        dates: set[str] = set()
        for directory in self.dirs:
            dates.update(list_dates(directory))
        return sorted(dates)

    def log_path(self, date: str) -> Path | None:
        for directory in self.dirs:
            path = resolve_log_path(directory, date)
            if path is not None:
                return path
        return None

    def read_lines(self, date: str) -> list[str]:
        """Lines of the log for ``date``.

        Raises:
            LogNotFoundError: No log exists for the date.
            OSError: The log exists but could not be read.
        """
        path = self.log_path(date)
        if path is None:
            raise LogNotFoundError(f"no log for {date} in {self.path}")
        return split_lines(read_log_file(path))


@dataclass(slots=True)
class ChannelNode:
    """One path segment of the channel tree."""

    channel: Channel | None = None
    children: dict[str, ChannelNode] = field(default_factory=dict)


class ChannelTree:
    """Immutable index of every channel found under the log roots."""

    def __init__(self, root: ChannelNode | None = None):
        self._root = root or ChannelNode()

    @classmethod
    def discover(cls, logs_dirs: Iterable[Path]) -> ChannelTree:
        """Walk each log root and build the tree.

        A directory holding at least one dated log becomes a channel at its
        path relative to the root. The same path under several roots merges
        into one channel. When a directory has any ``#`` subdirectory, only
        ``#`` subdirectories are descended into.
        """
        found: dict[tuple[str, ...], list[Path]] = {}
        for logs_dir in logs_dirs:
            root = Path(logs_dir).expanduser()
            if not root.is_dir():
                logger.warning(f"Logs dir not accessible: {root}")
                continue
            _walk(root.resolve(), (), found)

        tree_root = ChannelNode()
        for segments in sorted(found):
            node = tree_root
            for segment in segments:
                node = node.children.setdefault(segment, ChannelNode())
            node.channel = Channel(path_segments=segments, dirs=tuple(found[segments]))

        tree = cls(tree_root)
        logger.info(f"Discovered {len(tree)} channels")
        return tree

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_channels())

    def iter_channels(self) -> Iterator[Channel]:
        """Depth-first, children in name order."""
        yield from _iter_node(self._root)

    def find(self, channel_path: str) -> Channel | None:
        node = self._node(channel_path)
        return node.channel if node else None

    def resolve(self, channel_path: str) -> Channel:
        """Look up a searchable channel by its ``/``-joined path.

        Raises:
            ChannelError: Unknown path, a path naming no channel, or a non-``#`` channel.
        """
        node = self._node(channel_path)
        if node is None:
            raise ChannelError(f"unknown channel: {channel_path}")
        if node.channel is None:
            raise ChannelError(f"not a channel: {channel_path}")
        if not node.channel.is_public:
            raise ChannelError(f"channel not accessible: {channel_path}")
        return node.channel

    def _node(self, channel_path: str) -> ChannelNode | None:
        node = self._root
        for segment in channel_path.split("/"):
            child = node.children.get(segment)
            if child is None:
                return None
            node = child
        return node


def _walk(directory: Path, segments: tuple[str, ...], found: dict[tuple[str, ...], list[Path]]) -> None:
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        logger.warning(f"Skipping unreadable dir {directory}: {e}")
        return

    subdirs = sorted((e for e in entries if e.is_dir()), key=lambda p: p.name)
    has_logs = any(e.is_file() and date_from_filename(e.name) for e in entries)

    if has_logs and segments:
        found.setdefault(segments, []).append(directory)

    # Skip private query directories next to real channels
    has_hash_sibling = any(d.name.startswith(CHANNEL_PREFIX) for d in subdirs)
    for subdir in subdirs:
        if has_hash_sibling and not subdir.name.startswith(CHANNEL_PREFIX):
            continue
        _walk(subdir, (*segments, subdir.name), found)


def _iter_node(node: ChannelNode) -> Iterator[Channel]:
    if node.channel is not None:
        yield node.channel
    for key in sorted(node.children):
        yield from _iter_node(node.children[key])
