import random

from . import log
from .marks import check_mark, GENERATE_MARK, FETCH_MARK
from .utils import host_of_url, unreverse_url
from .work_item import WorkItem

logger = log.logger()

# Upper bound (exclusive) of the random dispatch keys.
DISPATCH_KEY_RANGE = 65536

class CandidateFilter:
    """Decides, page by page, what gets fetched in a run.

    The filter only reads the page it is given, so any number of threads may
    call ``filter`` over any subset of the store, in any order.
    """

    def __init__(self, run_params, rng=None):
        self._run_params = run_params
        # random.Random is safe to share between threads.
        self._rng = rng if rng is not None else random.Random()

    def is_eligible(self, url_key, page):
        generate_mark = check_mark(page, GENERATE_MARK)
        if not self._run_params.crawl_scope.matches(generate_mark):
            logger.debug(f"Skipping {unreverse_url(url_key)}; "+
                         f"different crawl id")
            return False

        if self._run_params.resume and check_mark(page, FETCH_MARK) is not None:
            logger.debug(f"Skipping {unreverse_url(url_key)}; already fetched")
            return False

        return True

    # filter returns the work item for a page, or None when the page is not
    # to be fetched in this run.
    def filter(self, url_key, page):
        if not self.is_eligible(url_key, page):
            return None

        url = unreverse_url(url_key)
        return WorkItem(
            dispatch_key=self._rng.randrange(DISPATCH_KEY_RANGE),
            host_key=host_of_url(url),
            url_key=url_key,
            url=url,
            repr_url=page.repr_url,
            generate_mark=check_mark(page, GENERATE_MARK),
            run_params=self._run_params,
        )

    # filter_all filters a batch of records. A record whose key does not
    # parse is logged and left out; it never stops the rest of the batch.
    def filter_all(self, records):
        items = []
        for url_key, page in records:
            try:
                item = self.filter(url_key, page)
            except ValueError as e:
                logger.warning(f"Skipping record '{url_key}'; {e}")
                continue
            if item is not None:
                items.append(item)
        return items
