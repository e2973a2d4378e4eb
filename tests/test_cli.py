import pytest

from ytchannel_scraper import cli
from ytchannel_scraper.errors import BrowserLaunchError
from ytchannel_scraper.orchestrator import ScrapingResult, ScrapingSummary


class StubOrchestrator:
    result = ScrapingResult(summary=ScrapingSummary(0, 0, 0, 5))
    error = None
    configs = []

    def __init__(self, **kwargs):
        pass

    def scrape(self, config):
        StubOrchestrator.configs.append(config)
        if StubOrchestrator.error:
            raise StubOrchestrator.error
        return StubOrchestrator.result


@pytest.fixture
def stub_orchestrator(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "ScrapingOrchestrator", StubOrchestrator)
    StubOrchestrator.error = None
    StubOrchestrator.configs = []
    return StubOrchestrator


class TestParser:
    def test_flags(self):
        args = cli.build_parser().parse_args(
            ["-u", "https://www.youtube.com/@chan", "-l", "5", "-o", "2", "-d", "300", "-r", "1",
             "--headless", "--dark-mode", "--complete-html", "-i"])
        assert args.channel_url == "https://www.youtube.com/@chan"
        assert (args.max_videos, args.offset, args.base_delay_ms, args.max_retries) == (5, 2, 300, 1)
        assert args.headless and args.dark_mode and args.save_complete_html and args.interactive
        assert args.theater_mode is None

    def test_youtube_url_check(self):
        assert cli.is_youtube_url("https://www.youtube.com/@chan")
        assert cli.is_youtube_url("https://youtu.be/dQw4w9WgXcQ")
        assert not cli.is_youtube_url("https://example.com/@chan")
        assert not cli.is_youtube_url("https://www.youtube.com/")


class TestRun:
    def test_success_exit_code_and_results_file(self, stub_orchestrator, tmp_path):
        out = tmp_path / "out"
        code = cli.run(["-u", "https://www.youtube.com/@chan", "--output-dir", str(out)])
        assert code == 0
        assert len(list((out / "data").glob("scraping_results_*.json"))) == 1
        assert stub_orchestrator.configs[0].output_dir == str(out)

    def test_launch_failure_exit_code(self, stub_orchestrator, tmp_path):
        stub_orchestrator.error = BrowserLaunchError("no chromium")
        assert cli.run(["-u", "https://www.youtube.com/@chan", "--output-dir", str(tmp_path / "o")]) == 1

    def test_prompts_for_missing_url(self, stub_orchestrator, tmp_path):
        answers = iter(["not a url", "https://www.youtube.com/watch?v=dQw4w9WgXcQ"])
        code = cli.run(["--output-dir", str(tmp_path / "o")], prompt=lambda msg: next(answers))
        assert code == 0
        assert stub_orchestrator.configs[0].channel_url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

    def test_negative_limit_rejected(self, stub_orchestrator, tmp_path):
        assert cli.run(["-u", "https://www.youtube.com/@chan", "-l", "-1"]) == 2
        assert stub_orchestrator.configs == []
