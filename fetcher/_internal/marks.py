# Marks are per-stage tokens stored on a page. Each one holds the id of the
# last crawl cycle in which that stage touched the page.
GENERATE_MARK = "GENERATE"
FETCH_MARK = "FETCH"
PARSE_MARK = "PARSE"

ALL_CRAWLS_ARG = "-all"

def check_mark(page, mark):
    return page.marks.get(mark)

class CrawlScope:
    """The crawl cycle a run is restricted to.

    A scope is either ``CrawlScope.specific(crawl_id)``, which only matches
    pages whose mark holds exactly that id, or ``CrawlScope.all()``, which
    matches any mark that is present.
    """

    SPECIFIC = "specific"
    ALL = "all"

    def __init__(self, kind, crawl_id=None):
        if kind == CrawlScope.SPECIFIC and not crawl_id:
            raise ValueError("a specific crawl scope needs a crawl id")
        if kind == CrawlScope.ALL and crawl_id is not None:
            raise ValueError("the all-crawls scope takes no crawl id")
        if kind not in (CrawlScope.SPECIFIC, CrawlScope.ALL):
            raise ValueError(f"unknown crawl scope kind '{kind}'")
        self._kind = kind
        self._crawl_id = crawl_id

    @classmethod
    def specific(cls, crawl_id):
        return cls(CrawlScope.SPECIFIC, crawl_id)

    @classmethod
    def all(cls):
        return cls(CrawlScope.ALL)

    # from_arg maps the command line argument to a scope: '-all' selects
    # every crawl, anything else is taken as a crawl id.
    @classmethod
    def from_arg(cls, arg):
        if arg == ALL_CRAWLS_ARG:
            return cls.all()
        return cls.specific(arg)

    @property
    def kind(self):
        return self._kind

    @property
    def crawl_id(self):
        return self._crawl_id

    def is_all(self):
        return self._kind == CrawlScope.ALL

    def matches(self, token):
        """Tell whether a stage mark belongs to this scope.

        An absent mark never matches, not even for the all-crawls scope.
        """
        if token is None:
            return False
        if self.is_all():
            return True
        return token == self._crawl_id

    def __eq__(self, other):
        if not isinstance(other, CrawlScope):
            return NotImplemented
        return self._kind == other._kind and self._crawl_id == other._crawl_id

    def __hash__(self):
        return hash((self._kind, self._crawl_id))

    def __repr__(self):
        if self.is_all():
            return "CrawlScope.all()"
        return f"CrawlScope.specific({self._crawl_id!r})"
