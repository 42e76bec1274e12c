from copy import deepcopy
import json
import os
from threading import Lock

from . import log
from .page import PageRecord
from .utils import reverse_url

logger = log.logger()

class PageStore:
    """Durable mapping from url key to page record.

    Reads return snapshots: changing a returned record never changes the
    store. Writes go through ``put`` and are idempotent for marks.
    """

    def get(self, url_key):
        raise NotImplementedError

    def scan(self, fields=None):
        raise NotImplementedError

    def put(self, url_key, fields):
        raise NotImplementedError

class MemoryPageStore(PageStore):
    def __init__(self, pages=None):
        self._pages = {}
        # _lock guards _pages. Executor threads write while other lanes read.
        self._lock = Lock()
        for page in pages or []:
            self._pages[page.url_key] = deepcopy(page)

    def __len__(self):
        with self._lock:
            return len(self._pages)

    def get(self, url_key):
        with self._lock:
            page = self._pages.get(url_key)
            return deepcopy(page) if page is not None else None

    # scan yields (url_key, record) snapshots of every page. When fields is
    # given, the records only carry those fields.
    def scan(self, fields=None):
        with self._lock:
            keys = list(self._pages.keys())

        for url_key in keys:
            with self._lock:
                page = self._pages.get(url_key)
                if page is None:
                    continue
                if fields is None:
                    snapshot = deepcopy(page)
                else:
                    snapshot = page.project(fields)
            yield url_key, snapshot

    def put(self, url_key, fields):
        with self._lock:
            page = self._pages.get(url_key)
            if page is None:
                page = PageRecord(url_key)
                self._pages[url_key] = page
            page.update(fields)

    # inject adds a page for the given URL, keyed by its reversed form.
    # Existing pages are left alone.
    def inject(self, url, marks=None, repr_url=None):
        url_key = reverse_url(url)
        with self._lock:
            if url_key in self._pages:
                return url_key
            self._pages[url_key] = PageRecord(url_key, marks=marks,
                                              repr_url=repr_url)
        return url_key

class JsonLinesPageStore(MemoryPageStore):
    """Page store kept in a JSON-lines file, one page per line."""

    def __init__(self, fpath):
        super().__init__()
        self.fpath = fpath

    def load(self):
        if not os.path.exists(self.fpath):
            logger.info(f"Page store '{self.fpath}' does not exist yet. "+
                        f"Starting empty.")
            return self

        with open(self.fpath, "r") as fin:
            for lineno, line in enumerate(fin, start=1):
                line = line.strip()
                if line == "":
                    continue
                try:
                    page = PageRecord.from_dict(json.loads(line))
                except (ValueError, KeyError) as e:
                    raise ValueError(f"{self.fpath}:{lineno}: bad page "+
                                     f"record: {e}") from e
                self._pages[page.url_key] = page

        logger.info(f"Loaded {len(self._pages)} pages from '{self.fpath}'.")
        return self

    # flush rewrites the whole file. It writes to a temporary file first so a
    # crash mid-write leaves the previous version in place.
    def flush(self):
        temp_fpath = self.fpath + ".tmp"
        with self._lock:
            with open(temp_fpath, "w") as fout:
                for url_key in sorted(self._pages):
                    fout.write(json.dumps(self._pages[url_key].to_dict(),
                                          ensure_ascii=False))
                    fout.write("\n")
            os.replace(temp_fpath, self.fpath)
        logger.info(f"Flushed {len(self._pages)} pages to '{self.fpath}'.")
