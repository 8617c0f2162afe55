"""
mytv - programme guide and playlist feeds

Fetches an XMLTV programme guide and an IPTV playlist, parses them into
structured lists and keeps them in a refresh-on-demand cache.
"""

__version__ = "0.1.0"
