"""
Playlist parsers

Turn playlist text into groups of entries. Selected by URL and sniffed content
through the ordered registry built by default_iptv_parsers().
"""
import logging
import re
from abc import ABC, abstractmethod

from mytv.schemas import Iptv, IptvGroup
from mytv.services.registry import SourceRegistry


logger = logging.getLogger(__name__)

DEFAULT_GROUP_NAME = "其他"
TXT_GROUP_MARKER = "#genre#"

_EXTINF_RE = re.compile(
    r'^#EXTINF:\s*[-\d.]+(?P<attrs>(?:\s*[\w-]+="[^"]*")*)\s*,\s*(?P<name>.*)$'
)
_ATTR_RE = re.compile(r'([\w-]+)="([^"]*)"')


class _GroupCollector:
    """Collects entries per group, merging same-named entries into one."""

    def __init__(self) -> None:
        self._groups: dict[str, dict[str, Iptv]] = {}

    def open_group(self, group_name: str) -> None:
        self._groups.setdefault(group_name, {})

    def add(self, group_name: str, name: str, channel_name: str, urls: list[str]) -> None:
        entries = self._groups.setdefault(group_name, {})
        entry = entries.get(name)
        if entry is None:
            entries[name] = Iptv(name=name, channel_name=channel_name, url_list=list(urls))
            return
        entry.url_list.extend(url for url in urls if url not in entry.url_list)

    def groups(self) -> list[IptvGroup]:
        return [
            IptvGroup(name=name, iptv_list=list(entries.values()))
            for name, entries in self._groups.items()
            if entries
        ]


class IptvParser(ABC):
    """Base parser; subclasses decide which sources they handle."""

    @abstractmethod
    def is_support(self, url: str, content: str) -> bool:
        """Whether this parser handles the source at ``url`` with ``content``."""

    @abstractmethod
    def parse(self, content: str) -> list[IptvGroup]:
        """Group the playlist entries of ``content``."""


class M3uIptvParser(IptvParser):
    """Extended M3U (#EXTM3U header, #EXTINF entries)"""

    def is_support(self, url: str, content: str) -> bool:
        return content.lstrip("\ufeff \t\r\n").startswith("#EXTM3U")

    def parse(self, content: str) -> list[IptvGroup]:
        collector = _GroupCollector()
        pending: tuple[str, str, str] | None = None  # (group, name, channel_name)

        for raw_line in content.splitlines():
            line = raw_line.strip()
            if not line:
                continue

            if line.startswith("#EXTINF"):
                pending = self._parse_extinf(line)
            elif line.startswith("#EXTGRP:") and pending is not None:
                group = line[len("#EXTGRP:"):].strip() or DEFAULT_GROUP_NAME
                pending = (group, pending[1], pending[2])
            elif line.startswith("#"):
                continue
            elif pending is not None:
                group, name, channel_name = pending
                collector.add(group, name, channel_name, [line])
                pending = None

        return collector.groups()

    @staticmethod
    def _parse_extinf(line: str) -> tuple[str, str, str]:
        match = _EXTINF_RE.match(line)
        if match:
            attrs = dict(_ATTR_RE.findall(match.group("attrs")))
            name = match.group("name").strip()
        else:
            attrs = {}
            name = line.split(",", 1)[1].strip() if "," in line else ""

        name = name or attrs.get("tvg-name", "")
        group = attrs.get("group-title", "").strip() or DEFAULT_GROUP_NAME
        channel_name = attrs.get("tvg-name", "").strip() or name
        return group, name, channel_name


class TxtIptvParser(IptvParser):
    """
    Plain text playlist: 'group,#genre#' headers and 'name,url' lines

    Registered last as the generic fallback; lines without a comma are skipped.
    """

    def is_support(self, url: str, content: str) -> bool:
        return True

    def parse(self, content: str) -> list[IptvGroup]:
        collector = _GroupCollector()
        group = DEFAULT_GROUP_NAME

        for raw_line in content.splitlines():
            line = raw_line.strip().lstrip("\ufeff")
            if not line or "," not in line:
                continue

            name, value = (part.strip() for part in line.split(",", 1))
            if value == TXT_GROUP_MARKER:
                group = name or DEFAULT_GROUP_NAME
                collector.open_group(group)
                continue

            urls = [url.strip() for url in value.split("#") if url.strip()]
            if not name or not urls:
                continue
            collector.add(group, name, name, urls)

        return collector.groups()


def default_iptv_parsers() -> SourceRegistry[IptvParser]:
    return SourceRegistry("IPTV parser", [M3uIptvParser(), TxtIptvParser()])
