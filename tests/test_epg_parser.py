"""Tests for the streaming XMLTV parser and XMLTV time handling."""

import time
from zoneinfo import ZoneInfo

import pytest

from mytv.errors import ParseError
from mytv.services import epg_parser
from mytv.services.epg_parser import parse_epg_xml, parse_epg_xml_async
from mytv.utils.timezone import parse_xmltv_time


MORNING_START = 1704088800000  # 2024-01-01T06:00:00Z
MORNING_END = 1704090600000    # 2024-01-01T06:30:00Z

GUIDE = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE tv SYSTEM "xmltv.dtd">
<tv generator-info-name="test">
  <channel id="1">
    <display-name lang="zh">News</display-name>
  </channel>
  <channel id="2">
    <display-name>Sports</display-name>
  </channel>
  <programme channel="1" start="20240101060000 +0000" stop="20240101063000 +0000">
    <title lang="zh">Morning</title>
  </programme>
  <programme channel="2" start="20240101070000 +0000" stop="20240101080000 +0000">
    <title>Match</title>
  </programme>
  <programme channel="1" start="20240101063000 +0000" stop="20240101070000 +0000">
    <title>Weather</title>
  </programme>
</tv>
"""


class TestParseEpgXml:

    def test_single_channel_single_programme(self):
        xml = """<tv>
          <channel id="1"><display-name>News</display-name></channel>
          <programme channel="1" start="20240101060000 +0000" stop="20240101063000 +0000">
            <title>Morning</title>
          </programme>
        </tv>"""

        epg_list = parse_epg_xml(xml)

        assert len(epg_list) == 1
        assert epg_list[0].channel == "News"
        assert len(epg_list[0].programmes) == 1
        programme = epg_list[0].programmes[0]
        assert programme.start_at == MORNING_START
        assert programme.end_at == MORNING_END
        assert programme.title == "Morning"

    def test_channels_and_programmes_keep_document_order(self):
        epg_list = parse_epg_xml(GUIDE)

        assert [epg.channel for epg in epg_list] == ["News", "Sports"]
        assert [p.title for p in epg_list[0].programmes] == ["Morning", "Weather"]
        assert [p.title for p in epg_list[1].programmes] == ["Match"]

    def test_programme_for_unknown_channel_is_dropped(self):
        xml = GUIDE.replace(
            "</tv>",
            '<programme channel="99" start="20240101060000 +0000" stop="20240101063000 +0000">'
            "<title>Ghost</title></programme></tv>",
        )

        epg_list = parse_epg_xml(xml)

        assert len(epg_list) == 2
        assert all(p.title != "Ghost" for epg in epg_list for p in epg.programmes)

    def test_filter_keeps_only_named_channels(self):
        epg_list = parse_epg_xml(GUIDE, filtered_channels=["Sports"])

        assert [epg.channel for epg in epg_list] == ["Sports"]
        assert [p.title for p in epg_list[0].programmes] == ["Match"]

    def test_filter_without_matches_yields_empty_list(self):
        assert parse_epg_xml(GUIDE, filtered_channels=["CCTV-1"]) == []

    def test_short_timestamps_resolve_to_zero(self):
        xml = """<tv>
          <channel id="1"><display-name>News</display-name></channel>
          <programme channel="1" start="202401010600" stop="202401010630"><title>Short</title></programme>
        </tv>"""

        programme = parse_epg_xml(xml)[0].programmes[0]

        assert programme.start_at == 0
        assert programme.end_at == 0
        assert programme.title == "Short"

    def test_malformed_timestamp_does_not_abort_parse(self):
        xml = """<tv>
          <channel id="1"><display-name>News</display-name></channel>
          <programme channel="1" start="2024AB01060000 +0000" stop="20240101063000 +0000"><title>Bad</title></programme>
          <programme channel="1" start="20240101063000 +0000" stop="20240101070000 +0000"><title>Good</title></programme>
        </tv>"""

        programmes = parse_epg_xml(xml)[0].programmes

        assert [(p.title, p.start_at) for p in programmes] == [("Bad", 0), ("Good", MORNING_END)]
        assert programmes[0].end_at == MORNING_END

    def test_missing_attributes_resolve_to_zero(self):
        xml = """<tv>
          <channel id="1"><display-name>News</display-name></channel>
          <programme channel="1"><title>Untimed</title></programme>
        </tv>"""

        programme = parse_epg_xml(xml)[0].programmes[0]

        assert (programme.start_at, programme.end_at) == (0, 0)

    def test_offsetless_timestamps_use_given_timezone(self):
        xml = """<tv>
          <channel id="1"><display-name>News</display-name></channel>
          <programme channel="1" start="20240101140000" stop="20240101143000"><title>Local</title></programme>
        </tv>"""

        programme = parse_epg_xml(xml, tz=ZoneInfo("Asia/Shanghai"))[0].programmes[0]

        assert programme.start_at == MORNING_START
        assert programme.end_at == MORNING_END

    def test_declared_encoding_is_ignored_for_decoded_text(self):
        xml = """<?xml version="1.0" encoding="GBK"?>
        <tv><channel id="hn"><display-name>湖南卫视</display-name></channel></tv>"""

        assert [epg.channel for epg in parse_epg_xml(xml)] == ["湖南卫视"]

    @pytest.mark.parametrize("document", ["", "   \n  "])
    def test_empty_document_yields_empty_list(self, document):
        assert parse_epg_xml(document) == []

    def test_malformed_document_raises_parse_error(self):
        with pytest.raises(ParseError):
            parse_epg_xml("<tv><channel id='1'><display-name>News</channel>")

    @pytest.mark.asyncio
    async def test_async_parse_matches_sync_parse(self):
        assert await parse_epg_xml_async(GUIDE, ["News"]) == parse_epg_xml(GUIDE, ["News"])

    @pytest.mark.asyncio
    async def test_async_parse_timeout_raises_parse_error(self, monkeypatch):
        def slow_parse(*args):
            time.sleep(1.5)
            return []

        monkeypatch.setattr(epg_parser, "parse_epg_xml", slow_parse)

        with pytest.raises(ParseError, match="timed out"):
            await parse_epg_xml_async(GUIDE, parse_timeout_seconds=1)

    @pytest.mark.asyncio
    async def test_zero_timeout_disables_limit(self):
        epg_list = await parse_epg_xml_async(GUIDE, parse_timeout_seconds=0)

        assert [epg.channel for epg in epg_list] == ["News", "Sports"]


class TestParseXmltvTime:

    def test_positive_offset(self):
        assert parse_xmltv_time("20240101140000 +0800") == MORNING_START

    def test_negative_offset(self):
        assert parse_xmltv_time("20231231230000 -0700") == MORNING_START

    def test_trailing_text_after_offset_is_ignored(self):
        assert parse_xmltv_time("20240101060000 +0000 extra") == MORNING_START

    @pytest.mark.parametrize("value", [None, "", "202401010600", "20241301060000 +0000", "abcdefghijklmn"])
    def test_unparseable_values_resolve_to_zero(self, value):
        assert parse_xmltv_time(value) == 0
