import hashlib

from .lane import Lane

class HostPartitioner:
    """Routes work items to lanes by host.

    The lane of an item is a stable hash of its host key modulo the lane
    count. The hash does not depend on the interpreter's string hashing, so
    the same host set is laid out the same way on every run and machine.
    """

    def __init__(self, num_lanes):
        if num_lanes < 1:
            raise ValueError("need at least one lane")
        self.num_lanes = num_lanes

    def lane_for(self, host_key):
        if self.num_lanes == 1:
            return 0
        digest = hashlib.sha256(host_key.lower().encode("utf-8")).digest()
        value = int.from_bytes(digest[:8], "big", signed=False)
        return value % self.num_lanes

    def partition(self, items):
        """Group items into ``num_lanes`` lanes.

        Items are sorted by dispatch key first. Within a host the fetch
        order therefore follows the random key and not the order in which
        pages were discovered or scanned.
        """
        lanes = [Lane(i) for i in range(self.num_lanes)]
        for item in sorted(items, key=lambda item: item.dispatch_key):
            lanes[self.lane_for(item.host_key)].add_item(item)
        return lanes
