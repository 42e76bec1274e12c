import concurrent.futures
from datetime import datetime
import time

from . import log
from .candidate_filter import CandidateFilter
from .config import Config
from .errors import ConfigurationError, PipelineError
from .page import fetch_fields
from .partitioner import HostPartitioner
from .run_params import RunParameters, compute_deadline
from .utils import fetch_run_result, STATUS_SUCCESS, STATUS_FAILED

logger = log.logger()

class FetchJob:
    """Drives one fetch run: filter, partition, execute.

    The job reads the store once, keeps the pages eligible for this run,
    groups them into lanes by host and hands each lane to the fetch
    executor. It never writes to the store itself.
    """

    # Number of scanned pages given to one filter task.
    _filter_chunk_size = 1000

    def __init__(self, config, page_store, executor, clock=time.time):
        self._config = config
        self._page_store = page_store
        self._executor = executor
        self._clock = clock

    # check_configuration makes sure an agent name is set, and warns when the
    # agent name is not the first one advertised for robots rules.
    def check_configuration(self):
        agent_name = self._config.agent_identity
        if agent_name is None or agent_name.strip() == "":
            message = (f"Fetcher: No agents listed in "+
                       f"'{Config.agent_identity_key}' property.")
            logger.critical(message)
            raise ConfigurationError(message)

        agents = self._config.agent_identity_allowlist
        if agents and agents[0].lower() != agent_name.strip().lower():
            logger.warning(f"Fetcher: Your '{Config.agent_identity_key}' "+
                           f"value should be listed first in "+
                           f"'{Config.agent_identity_allowlist_key}' property.")

    def build_run_params(self, thread_budget, crawl_scope, resume,
                         parse_enabled):
        if thread_budget is None or thread_budget <= 0:
            thread_budget = self._config.thread_budget
        if thread_budget is None:
            thread_budget = Config.default_thread_budget

        # The time limit is turned into an absolute timestamp here, once for
        # the whole job. Lanes that start late or run again after a failure
        # still stop at the same moment.
        deadline = compute_deadline(self._clock(),
                                    self._config.relative_time_limit_minutes)

        return RunParameters(
            thread_budget=thread_budget,
            deadline=deadline,
            crawl_scope=crawl_scope,
            resume=resume,
            parse_enabled=parse_enabled,
            agent_identity=self._config.agent_identity.strip(),
            lane_count=self._config.lane_count,
        )

    def _log_run_params(self, run_params):
        if run_params.deadline is None:
            logger.info("FetcherJob: no time limit set")
        else:
            logger.info(f"FetcherJob: time limit set for: "+
                        f"{datetime.fromtimestamp(run_params.deadline)} "+
                        f"({run_params.deadline})")
        logger.info(f"FetcherJob: threads: {run_params.thread_budget}")
        logger.info(f"FetcherJob: lanes: {run_params.lane_count}")
        logger.info(f"FetcherJob: parsing: {run_params.parse_enabled}")
        logger.info(f"FetcherJob: resuming: {run_params.resume}")
        if run_params.crawl_scope.is_all():
            logger.info("FetcherJob: fetching all")
        else:
            logger.info(f"FetcherJob: crawlId: "+
                        f"{run_params.crawl_scope.crawl_id}")

    # select scans the store and returns the work items of this run. Chunks
    # of pages are filtered in parallel; the filter shares nothing between
    # calls, so chunk order does not matter.
    def select(self, run_params):
        candidate_filter = CandidateFilter(run_params)
        fields = fetch_fields(run_params.parse_enabled)

        items = []
        with concurrent.futures.ThreadPoolExecutor(
                max_workers=run_params.thread_budget) as executor:
            futures = []
            chunk = []
            for record in self._page_store.scan(fields=fields):
                chunk.append(record)
                if len(chunk) >= self._filter_chunk_size:
                    futures.append(executor.submit(candidate_filter.filter_all,
                                                   chunk))
                    chunk = []
            if len(chunk) > 0:
                futures.append(executor.submit(candidate_filter.filter_all,
                                               chunk))

            for future in futures:
                items.extend(future.result())

        return items

    def _execute_lanes(self, lanes, run_params):
        lanes = [lane for lane in lanes if len(lane) > 0]
        if len(lanes) == 0:
            return []

        results = []
        with concurrent.futures.ThreadPoolExecutor(
                max_workers=len(lanes)) as executor:
            futures = {executor.submit(self._executor.execute, lane,
                                       run_params): lane
                       for lane in lanes}
            errors = []
            for future in concurrent.futures.as_completed(futures):
                lane = futures[future]
                try:
                    results.extend(future.result())
                except Exception as e:
                    logger.error(f"Lane {lane.index} failed: {e}",
                                 exc_info=True)
                    errors.append(lane.index)

        if len(errors) > 0:
            raise PipelineError(f"{len(errors)} of {len(lanes)} lanes failed "+
                                f"(lanes {sorted(errors)})")
        return results

    def run(self, thread_budget, crawl_scope, resume, parse_enabled):
        """Run the fetch stage and return a result dict.

        Configuration problems raise ConfigurationError before anything is
        read from the store. Failures of the pipeline itself are reported
        in the returned result with status FAILED.
        """
        logger.info("FetcherJob: starting")
        before = datetime.now()

        self.check_configuration()
        run_params = self.build_run_params(thread_budget, crawl_scope, resume,
                                           parse_enabled)
        self._log_run_params(run_params)

        dispatched = 0
        try:
            items = self.select(run_params)
            dispatched = len(items)
            logger.info(f"FetcherJob: {dispatched} urls selected for fetch")

            partitioner = HostPartitioner(run_params.lane_count)
            lanes = partitioner.partition(items)
            for lane in lanes:
                logger.debug(f"FetcherJob: {lane}")

            results = self._execute_lanes(lanes, run_params)
        except Exception as e:
            logger.error(f"FetcherJob: failed: {e}", exc_info=True)
            return fetch_run_result(status=STATUS_FAILED,
                                    dispatched=dispatched,
                                    reason=f"Fetch run failed: {e}")

        fetched = sum(1 for _, ok in results if ok)
        elapsed = datetime.now() - before
        logger.info(f"FetcherJob: done. {fetched} of {dispatched} urls "+
                    f"fetched. Elapsed time: {elapsed}")

        return fetch_run_result(status=STATUS_SUCCESS, dispatched=dispatched,
                                fetched=fetched,
                                failed=len(results) - fetched)
