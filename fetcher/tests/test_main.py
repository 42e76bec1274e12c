import sys

from .. import main as fetcher_main
from .._internal.fetch_executor import FetchExecutor
from .._internal.marks import GENERATE_MARK, FETCH_MARK
from .._internal.page_store import JsonLinesPageStore
from .._internal.utils import STATUS_SUCCESS, STATUS_FAILED

class MarkingExecutor(FetchExecutor):
    """Stands in for the HTTP executor: marks every item as fetched."""

    instances = []

    def __init__(self, page_store, config):
        self.page_store = page_store
        self.config = config
        self.lanes = []
        MarkingExecutor.instances.append(self)

    def execute(self, lane, run_params):
        self.lanes.append(lane)
        results = []
        for item in lane.items():
            self.page_store.put(item.url_key, {
                'status': "fetched",
                'marks': {FETCH_MARK: item.generate_mark},
            })
            results.append((item.url_key, True))
        return results

class TestMain:
    def build_store(self, tmp_path):
        fpath = str(tmp_path / "pages.jsonl")
        store = JsonLinesPageStore(fpath)
        store.inject("http://a.example.com/", marks={GENERATE_MARK: "cycle-7"})
        store.inject("http://b.example.com/", marks={GENERATE_MARK: "cycle-6"})
        store.flush()
        return fpath

    def test_no_arguments(self, monkeypatch, capsys):
        MarkingExecutor.instances = []
        monkeypatch.setattr(fetcher_main, 'HttpFetchExecutor', MarkingExecutor)
        monkeypatch.setattr(sys, 'argv', ['fetch'])

        assert fetcher_main.EXIT_FAILURE == fetcher_main.main()

        assert "Usage: fetch" in capsys.readouterr().err
        assert [] == MarkingExecutor.instances

    def test_flag_instead_of_crawl_id(self, capsys):
        result = fetcher_main.fetch(['-threads', '4'])

        assert STATUS_FAILED == result['Status']
        assert "Usage: fetch" in capsys.readouterr().err

    def test_successful_run(self, tmp_path, monkeypatch):
        MarkingExecutor.instances = []
        fpath = self.build_store(tmp_path)
        monkeypatch.setattr(fetcher_main, 'HttpFetchExecutor', MarkingExecutor)
        monkeypatch.setattr(sys, 'argv', [
            'fetch', '-D', 'agent-identity=test-bot',
            '-D', f'page-store-path={fpath}',
            'cycle-7', '-threads', '2', '-noParsing',
        ])

        assert fetcher_main.EXIT_SUCCESS == fetcher_main.main()

        store = JsonLinesPageStore(fpath).load()
        fetched = {key for key, page in store.scan()
                   if FETCH_MARK in page.marks}
        assert {"com.example.a:http/"} == fetched

    def test_resume_skips_fetched(self, tmp_path, monkeypatch):
        MarkingExecutor.instances = []
        fpath = self.build_store(tmp_path)
        monkeypatch.setattr(fetcher_main, 'HttpFetchExecutor', MarkingExecutor)
        args = ['-D', 'agent-identity=test-bot',
                '-D', f'page-store-path={fpath}', 'cycle-7', '-resume']

        first = fetcher_main.fetch(args)
        second = fetcher_main.fetch(args)

        assert STATUS_SUCCESS == first['Status']
        assert 1 == first['Dispatched']
        assert STATUS_SUCCESS == second['Status']
        assert 0 == second['Dispatched']

    def test_missing_agent_identity(self, tmp_path, monkeypatch):
        MarkingExecutor.instances = []
        fpath = self.build_store(tmp_path)
        monkeypatch.setattr(fetcher_main, 'HttpFetchExecutor', MarkingExecutor)

        result = fetcher_main.fetch(['-D', f'page-store-path={fpath}', '-all'])

        assert STATUS_FAILED == result['Status']
        assert "agent-identity" in result['Reason']
        assert all(len(e.lanes) == 0 for e in MarkingExecutor.instances)

    def test_invalid_configuration(self):
        result = fetcher_main.fetch(['-D', 'thread-budget=zero', '-all'])

        assert STATUS_FAILED == result['Status']
        assert "Invalid configuration" in result['Reason']

    def test_empty_crawl_id(self, capsys):
        result = fetcher_main.fetch([''])

        assert STATUS_FAILED == result['Status']
        assert "Usage: fetch" in capsys.readouterr().err

    def test_unknown_log_level(self):
        result = fetcher_main.fetch(['-D', 'log-level=LOUD', '-all'])

        assert STATUS_FAILED == result['Status']
        assert "Invalid configuration" in result['Reason']
