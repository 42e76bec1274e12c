import concurrent.futures
from threading import get_ident
import time

# HTTP communication
import urllib3

from . import log
from .marks import FETCH_MARK, PARSE_MARK
from .page import STATUS_FETCHED, STATUS_GONE, STATUS_RETRY
from .page_parser import parse_html
from .utils import CONTENT_TYPE_KEY, is_html
from .warc_archive import WarcArchive, lane_archive_path

logger = log.logger()

# HTTP codes after which a page is not expected to come back.
GONE_HTTP_CODES = [404, 410]

class FetchExecutor:
    """Consumes one lane of work items.

    ``execute`` returns a list of ``(url_key, ok)`` pairs, one per item of
    the lane. It writes fetch results and marks back to the page store
    itself; the caller only looks at the aggregate.
    """

    def execute(self, lane, run_params):
        raise NotImplementedError

class HttpFetchExecutor(FetchExecutor):
    # Each job fetches at most this many URLs of one host before the host
    # goes back in line. This keeps a single big host from holding a thread
    # for too long.
    _max_urls_per_job = 25

    def __init__(self, page_store, config, http_pool=None, sleep=time.sleep,
                 clock=time.time):
        self._page_store = page_store
        self._config = config
        self._http_pool = http_pool
        self._sleep = sleep
        self._clock = clock

    def _make_http_pool(self, run_params):
        if self._http_pool is not None:
            return self._http_pool
        # Redirects are followed by urllib3; retries are left to later runs.
        return urllib3.PoolManager(
            headers={'User-Agent': run_params.agent_identity},
            timeout=urllib3.Timeout(total=self._config.fetch_timeout_seconds),
            retries=urllib3.Retry(total=None, connect=0, read=0, other=0,
                                  status=0, redirect=5, raise_on_redirect=False),
        )

    def _open_archive(self, lane):
        if not self._config.warc_output_path:
            return None
        return WarcArchive(lane_archive_path(self._config.warc_output_path,
                                             lane.index))

    def execute(self, lane, run_params):
        results = []
        if len(lane) == 0:
            return results

        logger.info(f"Lane {lane.index}: fetching {len(lane)} urls from "+
                    f"{len(lane.hosts())} hosts with "+
                    f"{run_params.thread_budget} threads.")

        http_pool = self._make_http_pool(run_params)
        archive = self._open_archive(lane)
        # Maximum number of registered jobs at any given time.
        max_njobs = run_params.thread_budget * 2
        # Hosts that some thread is fetching right now. A host is never in
        # two jobs at once.
        active_hosts = set()
        jobs = {}
        deadline_logged = False

        try:
            with concurrent.futures.ThreadPoolExecutor(
                    max_workers=run_params.thread_budget) as executor:
                while len(jobs) > 0 or len(lane) > 0:
                    if run_params.deadline_passed(self._clock()):
                        if not deadline_logged:
                            logger.info(f"Lane {lane.index}: deadline "+
                                        f"reached, {len(lane)} urls left "+
                                        f"unfetched.")
                            deadline_logged = True
                        for host in lane.hosts():
                            results.extend(
                                (item.url_key, False)
                                for item in lane.remove_host(host))
                    else:
                        self._submit_jobs(lane, executor, jobs, active_hosts,
                                          max_njobs, http_pool, archive,
                                          run_params)

                    if len(jobs) == 0:
                        break

                    completed, _ = concurrent.futures.wait(
                        list(jobs.keys()),
                        timeout=2,
                        return_when=concurrent.futures.FIRST_COMPLETED,
                    )
                    for future in completed:
                        host = jobs.pop(future)
                        active_hosts.discard(host)
                        self._process_complete_future(lane, host, future,
                                                      results)
        finally:
            if archive is not None:
                archive.close()

        num_ok = sum(1 for _, ok in results if ok)
        logger.info(f"Lane {lane.index}: done. {num_ok} fetched, "+
                    f"{len(results) - num_ok} failed.")
        return results

    def _submit_jobs(self, lane, executor, jobs, active_hosts, max_njobs,
                     http_pool, archive, run_params):
        for host in lane.hosts():
            if len(jobs) >= max_njobs:
                break
            if host in active_hosts:
                continue
            batch = lane.pop_batch(host, self._max_urls_per_job)
            if len(batch) == 0:
                continue
            future = executor.submit(self._fetch_host, http_pool, host, batch,
                                     archive, run_params)
            jobs[future] = host
            active_hosts.add(host)

    # _process_complete_future collects a finished job. A host that failed
    # too many times in a row is dropped with everything it still has queued.
    def _process_complete_future(self, lane, host, future, results):
        # _fetch_host is built to not throw exceptions.
        host_results, num_failures = future.result()
        results.extend(host_results)

        if num_failures >= self._config.max_host_failures:
            dropped = lane.remove_host(host)
            if len(dropped) > 0:
                logger.info(f"Host '{host}' looks unreachable. Dropping "+
                            f"{len(dropped)} queued urls.")
            results.extend((item.url_key, False) for item in dropped)

    def _fetch_host(self, http_pool, host, items, archive, run_params):
        tid = get_ident()
        logger.debug(f"({tid}) Fetching {len(items)} urls of host '{host}'.")

        results = []
        num_failures = 0
        done = 0
        try:
            for item in items:
                if run_params.deadline_passed(self._clock()):
                    logger.debug(f"({tid}) Deadline reached while fetching "+
                                 f"host '{host}'.")
                    break
                if num_failures >= self._config.max_host_failures:
                    logger.info(f"({tid}) Reached max number of failures "+
                                f"for host '{host}'.")
                    break

                ok = self._fetch_item(http_pool, item, archive, run_params,
                                      tid)
                results.append((item.url_key, ok))
                done += 1
                if ok:
                    num_failures = 0
                else:
                    num_failures += 1

                # The next request to this host may come from the next batch.
                self._sleep(self._config.crawl_delay_seconds)
        except Exception as e:
            logger.error(f"({tid}) Received uncaught exception while "+
                         f"fetching host '{host}': {e}.", exc_info=True)

        # Whatever was not attempted counts as failed and keeps its marks.
        results.extend((item.url_key, False) for item in items[done:])
        return results, num_failures

    def _safe_request(self, http_pool, url, tid):
        try:
            return http_pool.request('GET', url)
        except urllib3.exceptions.MaxRetryError as e:
            logger.info(f"({tid}) Timeout for url '{url}': {e}")
            return None
        except Exception as e:
            logger.info(f"({tid}) Unknown error when requesting for "+
                        f"'{url}': {e}")
            return None

    def _fetch_item(self, http_pool, item, archive, run_params, tid):
        logger.debug(f"({tid}) Fetching url: {item.url}")
        resp = self._safe_request(http_pool, item.url, tid)
        if resp is None:
            self._page_store.put(item.url_key, {
                'status': STATUS_RETRY,
                'repr_url': item.repr_url,
            })
            return False

        logger.debug(f"({tid}) Got response status: {resp.status}")

        if resp.status < 200 or resp.status >= 300:
            if resp.status in GONE_HTTP_CODES:
                status = STATUS_GONE
            else:
                status = STATUS_RETRY
            self._page_store.put(item.url_key, {
                'status': status,
                'http_code': resp.status,
                'repr_url': item.repr_url,
            })
            return False

        data = resp.data or b""
        content_type = resp.headers.get(CONTENT_TYPE_KEY)

        if archive is not None:
            archive.write_response(item.url, resp.status,
                                   getattr(resp, 'reason', ''),
                                   list(resp.headers.items()), data)

        fields = {
            'status': STATUS_FETCHED,
            'http_code': resp.status,
            'content': data.decode('utf-8', errors='replace'),
            'content_type': content_type,
            'fetch_time': self._clock(),
            'repr_url': item.repr_url,
            'marks': {FETCH_MARK: item.generate_mark},
        }

        if run_params.parse_enabled and is_html(content_type):
            try:
                parsed = parse_html(item.url, data)
                fields['title'] = parsed.title
                fields['text'] = parsed.text
                fields['outlinks'] = parsed.outlinks
                fields['marks'][PARSE_MARK] = item.generate_mark
            except Exception as e:
                logger.info(f"({tid}) Error parsing '{item.url}': {e}")

        self._page_store.put(item.url_key, fields)
        return True
