"""
Streaming XMLTV parser

Single forward pass over the guide document with lxml.iterparse: channel
elements register a channel (subject to the name filter), programme elements
append to an already registered channel. Processed elements are cleared as the
pass goes, so no full document tree is kept; only the retained programmes are.
"""
from datetime import timezone, tzinfo
from functools import partial
from io import BytesIO
from typing import Collection
import asyncio
import logging
import re

from lxml import etree # type: ignore

from mytv.errors import ParseError
from mytv.schemas import Epg, EpgProgramme
from mytv.utils.timezone import parse_xmltv_time


logger = logging.getLogger(__name__)

_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


def parse_epg_xml(
    xml_string: str,
    filtered_channels: Collection[str] = (),
    tz: tzinfo = timezone.utc,
) -> list[Epg]:
    """
    Parse an XMLTV document into per-channel programme lists

    Args:
        xml_string: Complete XMLTV document
        filtered_channels: Display names to keep; empty keeps every channel
        tz: Timezone for timestamps that carry no UTC offset

    Returns:
        Channels in document order, each with its programmes in document order

    Raises:
        ParseError: If the document is not well-formed XML
    """
    if not xml_string or not xml_string.strip():
        logger.info("Guide document is empty, nothing to parse")
        return []

    wanted = set(filtered_channels)
    epg_map: dict[str, Epg] = {}
    skipped_channels = 0
    dropped_programmes = 0

    # The text is already decoded; a declared encoding would no longer apply
    source = BytesIO(_XML_DECLARATION_RE.sub("", xml_string, count=1).encode("utf-8"))

    try:
        for _, elem in etree.iterparse(
            source,
            events=("end",),
            tag=("channel", "programme"),
            remove_comments=True,
            remove_pis=True,
            resolve_entities=False,
            no_network=True,
            huge_tree=True,
        ):
            if elem.tag == "channel":
                channel_id = elem.get("id")
                channel_name = _first_text(elem)

                if channel_id is None:
                    skipped_channels += 1
                elif not wanted or channel_name in wanted:
                    epg_map[channel_id] = Epg(channel=channel_name, programmes=[])
                else:
                    skipped_channels += 1
            else:
                epg = epg_map.get(elem.get("channel"))
                if epg is not None:
                    epg.programmes.append(EpgProgramme(
                        start_at=parse_xmltv_time(elem.get("start"), tz),
                        end_at=parse_xmltv_time(elem.get("stop"), tz),
                        title=_first_text(elem),
                    ))
                else:
                    dropped_programmes += 1

            _release(elem)
    except etree.XMLSyntaxError as e:
        logger.error(f"XML parsing error: {e}")
        raise ParseError(f"Malformed guide document: {e}") from e

    logger.debug(f"Skipped {skipped_channels} filtered channels, dropped {dropped_programmes} programmes")
    logger.info(f"Guide parsing complete: {len(epg_map)} channels")
    return list(epg_map.values())


async def parse_epg_xml_async(
    xml_string: str,
    filtered_channels: Collection[str] = (),
    tz: tzinfo = timezone.utc,
    *,
    parse_timeout_seconds: int | None = None,
) -> list[Epg]:
    """
    Parse off the event loop, in the default thread pool executor.

    Keyword Args:
        parse_timeout_seconds: Timeout in seconds for parsing (0/None disables timeout)

    Raises:
        ParseError: If the document is malformed or parsing times out
    """
    effective_timeout = parse_timeout_seconds if parse_timeout_seconds and parse_timeout_seconds > 0 else None

    loop = asyncio.get_running_loop()
    parse_task = loop.run_in_executor(
        None,
        partial(parse_epg_xml, xml_string, tuple(filtered_channels), tz),
    )

    try:
        if effective_timeout:
            return await asyncio.wait_for(parse_task, timeout=effective_timeout)
        return await parse_task
    except asyncio.TimeoutError as e:
        logger.error(f"Guide parsing timed out after {effective_timeout}s")
        raise ParseError("Guide parsing timed out - document may be too large or malformed") from e


def _first_text(elem) -> str:
    """Text of the first child element, falling back to the element's own text."""
    for child in elem:
        return (child.text or "").strip()
    return (elem.text or "").strip()


def _release(elem) -> None:
    elem.clear()
    parent = elem.getparent()
    if parent is not None:
        while elem.getprevious() is not None:
            del parent[0]
