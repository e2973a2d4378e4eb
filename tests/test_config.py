import json
import os

import pytest

from ytchannel_scraper.config import build_config, default_output_dir, load_input_file


class TestBuildConfig:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.delenv("PLAYWRIGHT_HEADLESS", raising=False)
        monkeypatch.setenv("SCRAPER_OUTPUT_ROOT", str(tmp_path))
        config = build_config({"channel_url": "https://www.youtube.com/@chan/"})
        assert config.channel_url == "https://www.youtube.com/@chan"
        assert config.max_videos == 50
        assert config.offset == 0
        assert config.base_delay_ms == 1000
        assert config.max_retries == 3
        assert config.headless is False
        assert config.output_dir == os.path.join(str(tmp_path), "chan")
        assert not config.is_single_video

    def test_cli_beats_file_beats_env(self, monkeypatch):
        monkeypatch.setenv("PLAYWRIGHT_HEADLESS", "1")
        file_values = {"channel_url": "https://www.youtube.com/@fromfile", "max_videos": 5, "headless": False}
        config = build_config({"channel_url": None, "max_videos": 7, "headless": None, "output_dir": "out"},
                              file_values)
        assert config.channel_url == "https://www.youtube.com/@fromfile"
        assert config.max_videos == 7
        assert config.headless is False

    def test_env_headless(self, monkeypatch):
        monkeypatch.setenv("PLAYWRIGHT_HEADLESS", "true")
        config = build_config({"channel_url": "https://www.youtube.com/@chan", "output_dir": "out"})
        assert config.headless is True

    def test_browser_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("LOCALE", "de-DE")
        config = build_config({"channel_url": "https://www.youtube.com/@chan", "output_dir": "out"})
        assert config.browser.locale == "de-DE"

    def test_missing_url(self):
        with pytest.raises(ValueError):
            build_config({"channel_url": None})

    def test_negative_limit(self):
        with pytest.raises(ValueError):
            build_config({"channel_url": "https://www.youtube.com/@chan", "max_videos": -1})

    def test_single_video(self):
        config = build_config({"channel_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ", "output_dir": "o"})
        assert config.is_single_video


class TestInputFile:
    def test_camel_case_keys(self, tmp_path):
        path = tmp_path / "input.json"
        path.write_text(json.dumps({"channelUrl": "https://www.youtube.com/@chan", "maxVideos": 3,
                                    "useDarkMode": True, "unrelated": 1}))
        assert load_input_file(str(path)) == {
            "channel_url": "https://www.youtube.com/@chan", "max_videos": 3, "dark_mode": True,
        }

    def test_unreadable_file_ignored(self, tmp_path):
        path = tmp_path / "input.json"
        path.write_text("{not json")
        assert load_input_file(str(path)) == {}

    def test_local_file_preferred(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "input.json").write_text(json.dumps({"url": "https://www.youtube.com/@a"}))
        (tmp_path / "input.local.json").write_text(json.dumps({"url": "https://www.youtube.com/@b"}))
        assert load_input_file()["channel_url"] == "https://www.youtube.com/@b"


class TestOutputDir:
    def test_video_and_channel_names(self, tmp_path):
        root = str(tmp_path)
        assert default_output_dir("https://www.youtube.com/watch?v=dQw4w9WgXcQ", root).endswith("dQw4w9WgXcQ")
        assert default_output_dir("https://www.youtube.com/@chan", root).endswith("chan")
        assert default_output_dir("https://www.youtube.com/", root).endswith("unknown-channel")
