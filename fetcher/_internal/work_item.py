# WorkItem is the unit of dispatch between the candidate filter and the fetch
# executor. It lives for one run only and is never written to the store.
#
# It carries two keys. dispatch_key is random and only spreads load;
# host_key comes from the URL and decides which lane the item goes to.
# generate_mark is the page's GENERATE token at scan time, which the
# executor copies into the FETCH mark.
class WorkItem:
    __slots__ = ('dispatch_key', 'host_key', 'url_key', 'url', 'repr_url',
                 'generate_mark', 'run_params')

    def __init__(self, dispatch_key, host_key, url_key, url, repr_url,
                 generate_mark, run_params):
        self.dispatch_key = dispatch_key
        self.host_key = host_key
        self.url_key = url_key
        self.url = url
        self.repr_url = repr_url
        self.generate_mark = generate_mark
        self.run_params = run_params

    @property
    def deadline(self):
        return self.run_params.deadline

    def __repr__(self):
        return (f"WorkItem(dispatch_key={self.dispatch_key}, "+
                f"host_key={self.host_key!r}, url={self.url!r})")
