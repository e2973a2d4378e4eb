#!/usr/bin/env python3
"""
YouTube channel scraper

Run with a channel or video URL, or with an input.local.json / input.json
next to this file (keys: channelUrl, maxVideos, offset, baseDelay, ...).

    python main.py -u https://www.youtube.com/@somechannel -l 10
"""
from ytchannel_scraper.cli import main


if __name__ == "__main__":
    main()
