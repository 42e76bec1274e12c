import sys

from ._internal.config import parse_config, USAGE
from ._internal.errors import UsageError
from ._internal.fetch_executor import HttpFetchExecutor
from ._internal.fetch_job import FetchJob
from ._internal.page_store import JsonLinesPageStore
from ._internal.utils import fetch_run_result, STATUS_SUCCESS, STATUS_FAILED
from ._internal import log

logger = log.logger()

EXIT_SUCCESS = 0
EXIT_FAILURE = -1

def fetch(args):
    try:
        cfg, fetch_args = parse_config(args)
    except UsageError as e:
        print(f"{e}\n{USAGE}", file=sys.stderr)
        return fetch_run_result(status=STATUS_FAILED, reason=f"Usage: {e}")
    except Exception as e:
        logger.critical(e, exc_info=True)
        return fetch_run_result(status=STATUS_FAILED,
                                reason=f"Invalid configuration: {e}")

    try:
        log.set_level(cfg.log_level)

        logger.info("Parsed config. Config in json format:\n" + cfg.to_json())

        page_store = JsonLinesPageStore(cfg.page_store_path).load()
        executor = HttpFetchExecutor(page_store, cfg)
        job = FetchJob(cfg, page_store, executor)

        result = job.run(
            thread_budget=fetch_args.threads,
            crawl_scope=fetch_args.crawl_scope,
            resume=fetch_args.resume or cfg.resume_enabled,
            parse_enabled=fetch_args.parsing and cfg.parse_enabled,
        )

        # Only the executor writes, so the file is saved even when some lanes
        # failed: what was fetched keeps its marks.
        if result['Dispatched'] > 0:
            page_store.flush()

        return result

    except Exception as e:
        logger.critical(e, exc_info=True)

        return fetch_run_result(status=STATUS_FAILED,
                                reason=f"Fetch run failed: {e}")

def main():
    result = fetch(sys.argv[1:])
    logger.info(f"Fetch run result: {result}")
    if result['Status'] == STATUS_SUCCESS:
        return EXIT_SUCCESS
    return EXIT_FAILURE

def cli():
    sys.exit(main())
