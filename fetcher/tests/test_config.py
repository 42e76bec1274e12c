import json
import tempfile

import pytest

from .._internal.config import Config, parse_config, parse_generic_options
from .._internal.errors import ConfigurationError, UsageError

class TestConfig:
    def build_args(self, crawl_id="", threads="", resume=False,
                   no_parsing=False):
        args = []
        if crawl_id != '':
            args.append(crawl_id)
        if threads != '':
            args.extend(['-threads', threads])
        if resume:
            args.append('-resume')
        if no_parsing:
            args.append('-noParsing')
        return args

    def write_config_file(self, options):
        f = tempfile.NamedTemporaryFile('w', suffix='.json', delete=False)
        json.dump(options, f)
        f.close()
        return f.name

    def test_parse_config_empty(self):
        with pytest.raises(UsageError):
            parse_config([])

    def test_parse_config_flag_in_crawl_id_position(self):
        for flag in ['-threads', '-resume', '-noParsing']:
            with pytest.raises(UsageError):
                parse_config([flag])

    def test_parse_config_valid(self):
        args = self.build_args('cycle-7', '5', resume=True, no_parsing=True)

        config, fetch_args = parse_config(args)

        assert fetch_args.crawl_scope.crawl_id == 'cycle-7'
        assert not fetch_args.crawl_scope.is_all()
        assert 5 == fetch_args.threads
        assert True == fetch_args.resume
        assert False == fetch_args.parsing
        assert isinstance(config, Config)

    def test_parse_config_defaults(self):
        _, fetch_args = parse_config(self.build_args('cycle-7'))

        assert -1 == fetch_args.threads
        assert False == fetch_args.resume
        assert True == fetch_args.parsing

    def test_parse_config_all(self):
        _, fetch_args = parse_config(self.build_args('-all'))

        assert fetch_args.crawl_scope.is_all()

    def test_parse_config_threads_without_number(self):
        with pytest.raises(UsageError):
            parse_config(['cycle-7', '-threads'])

    def test_parse_config_threads_not_a_number(self):
        with pytest.raises(UsageError):
            parse_config(self.build_args('cycle-7', 'many'))

    def test_parse_config_unknown_argument(self):
        with pytest.raises(UsageError):
            parse_config(['cycle-7', '-fast'])

    def test_generic_option_d(self):
        config, _ = parse_config(['-D', 'agent-identity=my-bot',
                                  '-D', 'lane-count=8', 'cycle-7'])

        assert 'my-bot' == config.agent_identity
        assert 8 == config.lane_count

    def test_generic_option_d_malformed(self):
        with pytest.raises(UsageError):
            parse_generic_options(['-D', 'agent-identity', 'cycle-7'])

    def test_config_file(self):
        fpath = self.write_config_file({
            'agent-identity': 'file-bot',
            'agent-identity-allowlist': 'file-bot, other-bot',
            'relative-time-limit-minutes': 30,
            'thread-budget': 4,
            'resume-enabled': 'true',
            'parse-enabled': False,
        })

        config, _ = parse_config(['-conf', fpath, 'cycle-7'])

        assert 'file-bot' == config.agent_identity
        assert ['file-bot', 'other-bot'] == config.agent_identity_allowlist
        assert 30 == config.relative_time_limit_minutes
        assert 4 == config.thread_budget
        assert True == config.resume_enabled
        assert False == config.parse_enabled

    def test_d_overrides_config_file(self):
        fpath = self.write_config_file({'agent-identity': 'file-bot'})

        config, _ = parse_config(['-conf', fpath, '-D', 'agent-identity=cli-bot',
                                  'cycle-7'])

        assert 'cli-bot' == config.agent_identity

    def test_config_file_not_exists(self):
        with pytest.raises(FileNotFoundError):
            parse_config(['-conf', 'this-file-does-not-exist', 'cycle-7'])

    def test_invalid_thread_budget_below(self):
        with pytest.raises(ConfigurationError):
            Config.from_mapping({'thread-budget': '0'})

    def test_invalid_lane_count(self):
        with pytest.raises(ConfigurationError):
            Config.from_mapping({'lane-count': 'abc'})

    def test_invalid_bool(self):
        with pytest.raises(ConfigurationError):
            Config.from_mapping({'resume-enabled': 'perhaps'})

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError):
            Config.from_mapping({'http.agent.name': 'bot'})

    def test_to_json_parseable(self):
        config = Config()
        # Hopefully does not throw any exceptions
        json.loads(config.to_json(), strict=False)

    def test_parse_config_blank_crawl_id(self):
        for crawl_id in ['', '  ']:
            with pytest.raises(UsageError):
                parse_config([crawl_id])

    def test_log_level(self):
        assert 'DEBUG' == Config.from_mapping({'log-level': 'debug'}).log_level

    def test_invalid_log_level(self):
        with pytest.raises(ConfigurationError):
            Config.from_mapping({'log-level': 'LOUD'})
