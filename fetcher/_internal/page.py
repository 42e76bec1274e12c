from copy import deepcopy

# Fields the fetch stage always needs to read.
BASE_FIELDS = ['marks', 'repr_url']
# Fields written by the executor when a page is fetched.
FETCH_FIELDS = ['status', 'http_code', 'content', 'content_type', 'fetch_time']
# Fields written by the in-line parse step.
PARSE_FIELDS = ['title', 'text', 'outlinks']

ALL_FIELDS = BASE_FIELDS + FETCH_FIELDS + PARSE_FIELDS

STATUS_UNFETCHED = "unfetched"
STATUS_FETCHED = "fetched"
STATUS_RETRY = "retry"
STATUS_GONE = "gone"

# fetch_fields returns the page fields a fetch run reads. The parse fields
# are only needed when pages are parsed right after being fetched.
def fetch_fields(parse_enabled):
    fields = list(BASE_FIELDS)
    if parse_enabled:
        fields.extend(PARSE_FIELDS)
    return fields

class PageRecord:
    def __init__(self, url_key, marks=None, repr_url=None,
                 status=STATUS_UNFETCHED, http_code=None, content=None,
                 content_type=None, fetch_time=None, title=None, text=None,
                 outlinks=None):
        self.url_key = url_key
        self.marks = dict(marks) if marks else {}
        self.repr_url = repr_url
        self.status = status
        self.http_code = http_code
        self.content = content
        self.content_type = content_type
        self.fetch_time = fetch_time
        self.title = title
        self.text = text
        self.outlinks = list(outlinks) if outlinks else []

    def to_dict(self):
        d = {'url_key': self.url_key}
        for field in ALL_FIELDS:
            d[field] = deepcopy(getattr(self, field))
        return d

    @classmethod
    def from_dict(cls, d):
        kwargs = {field: d[field] for field in ALL_FIELDS if field in d}
        return cls(d['url_key'], **kwargs)

    # project returns a copy holding only the given fields (and the key).
    def project(self, fields):
        d = {'url_key': self.url_key}
        for field in fields:
            d[field] = deepcopy(getattr(self, field))
        return PageRecord.from_dict(d)

    # update applies written fields. Marks are merged stage by stage; a mark
    # set to None is removed.
    def update(self, fields):
        for field, value in fields.items():
            if field not in ALL_FIELDS:
                raise KeyError(f"unknown page field '{field}'")
            if field == 'marks':
                for mark, token in value.items():
                    if token is None:
                        self.marks.pop(mark, None)
                    else:
                        self.marks[mark] = token
            else:
                setattr(self, field, deepcopy(value))

    def __eq__(self, other):
        if not isinstance(other, PageRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"PageRecord({self.url_key!r}, marks={self.marks!r})"
