from collections import namedtuple
import time

_RunParameters = namedtuple('RunParameters', [
    'thread_budget',
    'deadline',
    'crawl_scope',
    'resume',
    'parse_enabled',
    'agent_identity',
    'lane_count',
])

class RunParameters(_RunParameters):
    """Parameters of one fetch run.

    Computed once by the job driver before any work is scheduled and shared,
    read-only, by every work item and lane. ``deadline`` is an absolute epoch
    timestamp in seconds, or None when the run has no time limit.
    """

    __slots__ = ()

    def deadline_passed(self, now=None):
        if self.deadline is None:
            return False
        if now is None:
            now = time.time()
        return now >= self.deadline

# compute_deadline converts a relative limit in minutes into an absolute
# timestamp. Only positive limits produce a deadline.
def compute_deadline(start_time, relative_time_limit_minutes):
    if relative_time_limit_minutes is None or relative_time_limit_minutes <= 0:
        return None
    return start_time + relative_time_limit_minutes * 60
