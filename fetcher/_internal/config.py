import json
import logging

from .errors import ConfigurationError, UsageError
from .marks import CrawlScope, ALL_CRAWLS_ARG
from .utils import between

USAGE = "Usage: fetch (<crawl id> | -all) [-threads N] [-noParsing] [-resume]"

TRUE_STRINGS = ['true', 'yes', 'on', '1']
FALSE_STRINGS = ['false', 'no', 'off', '0']

class Config:
    agent_identity_key = 'agent-identity'
    agent_identity_allowlist_key = 'agent-identity-allowlist'
    relative_time_limit_minutes_key = 'relative-time-limit-minutes'
    thread_budget_key = 'thread-budget'
    resume_enabled_key = 'resume-enabled'
    parse_enabled_key = 'parse-enabled'
    page_store_path_key = 'page-store-path'
    lane_count_key = 'lane-count'
    fetch_timeout_seconds_key = 'fetch-timeout-seconds'
    crawl_delay_seconds_key = 'crawl-delay-seconds'
    max_host_failures_key = 'max-host-failures'
    warc_output_path_key = 'warc-output-path'
    log_level_key = 'log-level'

    default_thread_budget = 10
    default_page_store_path = "pages.jsonl"

    min_thread_budget = 1
    max_thread_budget = 1024
    min_lane_count = 1
    max_lane_count = 1024

    def __init__(self, agent_identity="", agent_identity_allowlist=None,
                 relative_time_limit_minutes=None, thread_budget=None,
                 resume_enabled=False, parse_enabled=True,
                 page_store_path=default_page_store_path, lane_count=4,
                 fetch_timeout_seconds=10.0, crawl_delay_seconds=1.0,
                 max_host_failures=5, warc_output_path="", log_level="INFO"):
        self.agent_identity = agent_identity
        self.agent_identity_allowlist = agent_identity_allowlist
        self.relative_time_limit_minutes = relative_time_limit_minutes
        self.thread_budget = thread_budget
        self.resume_enabled = resume_enabled
        self.parse_enabled = parse_enabled
        self.page_store_path = page_store_path
        self.lane_count = lane_count
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self.crawl_delay_seconds = crawl_delay_seconds
        self.max_host_failures = max_host_failures
        self.warc_output_path = warc_output_path
        self.log_level = log_level

    # from_mapping builds a Config out of raw 'key -> value' options, as read
    # from a config file or from '-D key=value' arguments. Values may be
    # strings; they are converted and range-checked here.
    @classmethod
    def from_mapping(cls, options):
        parsers = {
            cls.agent_identity_key: ('agent_identity', _parse_str),
            cls.agent_identity_allowlist_key: ('agent_identity_allowlist',
                                               _parse_list),
            cls.relative_time_limit_minutes_key: ('relative_time_limit_minutes',
                                                  _parse_float),
            cls.thread_budget_key: ('thread_budget', _thread_budget_parser),
            cls.resume_enabled_key: ('resume_enabled', _parse_bool),
            cls.parse_enabled_key: ('parse_enabled', _parse_bool),
            cls.page_store_path_key: ('page_store_path', _parse_str),
            cls.lane_count_key: ('lane_count', _lane_count_parser),
            cls.fetch_timeout_seconds_key: ('fetch_timeout_seconds',
                                            _positive_float_parser),
            cls.crawl_delay_seconds_key: ('crawl_delay_seconds',
                                          _non_negative_float_parser),
            cls.max_host_failures_key: ('max_host_failures',
                                        _positive_int_parser),
            cls.warc_output_path_key: ('warc_output_path', _parse_str),
            cls.log_level_key: ('log_level', _parse_log_level),
        }

        kwargs = {}
        for key, value in options.items():
            if key not in parsers:
                raise ConfigurationError(f"unknown configuration key '{key}'")
            attr, parse = parsers[key]
            try:
                kwargs[attr] = parse(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"invalid value {value!r} for '{key}': {e}") from e

        return cls(**kwargs)

    def to_dict(self):
        return {
            self.agent_identity_key: self.agent_identity,
            self.agent_identity_allowlist_key: self.agent_identity_allowlist,
            self.relative_time_limit_minutes_key:
                self.relative_time_limit_minutes,
            self.thread_budget_key: self.thread_budget,
            self.resume_enabled_key: self.resume_enabled,
            self.parse_enabled_key: self.parse_enabled,
            self.page_store_path_key: self.page_store_path,
            self.lane_count_key: self.lane_count,
            self.fetch_timeout_seconds_key: self.fetch_timeout_seconds,
            self.crawl_delay_seconds_key: self.crawl_delay_seconds,
            self.max_host_failures_key: self.max_host_failures,
            self.warc_output_path_key: self.warc_output_path,
            self.log_level_key: self.log_level,
        }

    def to_json(self):
        return json.dumps(self.to_dict(), indent=1)

class FetchArgs:
    """Tool arguments of one fetch run, as given on the command line."""

    def __init__(self, crawl_scope, threads=-1, resume=False, parsing=True):
        self.crawl_scope = crawl_scope
        self.threads = threads
        self.resume = resume
        self.parsing = parsing

def _parse_str(value):
    if not isinstance(value, str):
        raise TypeError("expected a string")
    return value.strip()

def _parse_list(value):
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value]
    else:
        items = [v.strip() for v in _parse_str(value).split(",")]
    return [item for item in items if item != ""]

def _parse_bool(value):
    if isinstance(value, bool):
        return value
    lowered = _parse_str(value).lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise ValueError("expected a boolean")

def _parse_int(value):
    if isinstance(value, bool):
        raise TypeError("expected an integer")
    return int(value)

def _parse_float(value):
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError("expected a number")
    return float(value)

def _int_in_range(low, high):
    def parse(value):
        n = _parse_int(value)
        if not between(n, low, high):
            raise ValueError(f"must be between {low} and {high}")
        return n
    return parse

_thread_budget_parser = _int_in_range(Config.min_thread_budget,
                                      Config.max_thread_budget)
_lane_count_parser = _int_in_range(Config.min_lane_count,
                                   Config.max_lane_count)

# _parse_log_level accepts the standard logging level names, in any case.
def _parse_log_level(value):
    name = _parse_str(value).upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError("expected a logging level name")
    return name

def _positive_int_parser(value):
    n = _parse_int(value)
    if n <= 0:
        raise ValueError("must be positive")
    return n

def _positive_float_parser(value):
    f = _parse_float(value)
    if f is None or f <= 0:
        raise ValueError("must be positive")
    return f

def _non_negative_float_parser(value):
    f = _parse_float(value)
    if f is None or f < 0:
        raise ValueError("must not be negative")
    return f

def load_config_file(fpath):
    with open(fpath, "r") as fin:
        try:
            options = json.load(fin)
        except ValueError as e:
            raise ConfigurationError(f"config file '{fpath}' is not valid "+
                                     f"JSON: {e}") from e
    if not isinstance(options, dict):
        raise ConfigurationError(f"config file '{fpath}' must hold a JSON "+
                                 f"object")
    return options

# parse_generic_options consumes the leading '-conf <file>' and
# '-D key=value' options. It returns the merged raw options, with '-D' values
# taking precedence over file values, and the remaining tool arguments.
def parse_generic_options(args):
    file_options = {}
    overrides = {}
    arg_idx = 0
    while arg_idx < len(args):
        arg = args[arg_idx]
        if arg == '-conf':
            if arg_idx + 1 >= len(args):
                raise UsageError("-conf needs a file argument")
            file_options.update(load_config_file(args[arg_idx + 1]))
            arg_idx += 2
        elif arg == '-D':
            if arg_idx + 1 >= len(args):
                raise UsageError("-D needs a key=value argument")
            key, sep, value = args[arg_idx + 1].partition("=")
            if sep == "" or key.strip() == "":
                raise UsageError(f"-D expects key=value, got "+
                                 f"'{args[arg_idx + 1]}'")
            overrides[key.strip()] = value
            arg_idx += 2
        else:
            break

    options = dict(file_options)
    options.update(overrides)
    return options, args[arg_idx:]

def parse_fetch_args(args):
    if len(args) == 0:
        raise UsageError("missing crawl id")

    crawl_id = args[0]
    if crawl_id.strip() == "":
        raise UsageError("missing crawl id")
    if crawl_id != ALL_CRAWLS_ARG and crawl_id.startswith("-"):
        raise UsageError(f"expected a crawl id or {ALL_CRAWLS_ARG}, "+
                         f"got '{crawl_id}'")

    fetch_args = FetchArgs(CrawlScope.from_arg(crawl_id))

    arg_idx = 1
    while arg_idx < len(args):
        if '-threads' == args[arg_idx]:
            if arg_idx + 1 >= len(args):
                raise UsageError("-threads needs a number")
            try:
                fetch_args.threads = int(args[arg_idx + 1])
            except ValueError:
                raise UsageError(f"-threads expects a number, got "+
                                 f"'{args[arg_idx + 1]}'")
            arg_idx += 1
        elif '-resume' == args[arg_idx]:
            fetch_args.resume = True
        elif '-noParsing' == args[arg_idx]:
            fetch_args.parsing = False
        else:
            raise UsageError(f"unknown argument '{args[arg_idx]}'")
        arg_idx += 1

    return fetch_args

# parse_config reads the whole command line. Configuration problems raise
# ConfigurationError, malformed tool arguments raise UsageError.
def parse_config(args):
    options, tool_args = parse_generic_options(args)
    fetch_args = parse_fetch_args(tool_args)
    return Config.from_mapping(options), fetch_args
