from collections import OrderedDict

# Lane is the share of a run's work routed to one worker unit. Items are
# kept per host, so the executor can fetch each host from a single thread
# while moving between hosts in round-robin order.
class Lane:
    def __init__(self, index):
        self.index = index
        self.tofetch = OrderedDict()
        self.total_tofetch = 0

    def __len__(self):
        return self.total_tofetch

    def add_item(self, item):
        if self.tofetch.get(item.host_key) is None:
            self.tofetch[item.host_key] = []
        self.tofetch[item.host_key].append(item)
        self.total_tofetch += 1

    def hosts(self):
        return list(self.tofetch.keys())

    def items(self):
        all_items = []
        for host in self.tofetch:
            all_items.extend(self.tofetch[host])
        return all_items

    def items_for(self, host):
        return list(self.tofetch.get(host, []))

    # pop_batch takes up to max_items items of a host off the lane, keeping
    # their order. The host is dropped once it has nothing left.
    def pop_batch(self, host, max_items=None):
        queue = self.tofetch.get(host)
        if not queue:
            return []
        if max_items is None or max_items >= len(queue):
            batch = queue
            self.tofetch.pop(host)
        else:
            batch = queue[:max_items]
            self.tofetch[host] = queue[max_items:]
            # Send the host to the back, so the others get their turn.
            self.tofetch.move_to_end(host)
        self.total_tofetch -= len(batch)
        return batch

    def remove_host(self, host):
        queue = self.tofetch.pop(host, None)
        if queue:
            self.total_tofetch -= len(queue)
            return queue
        return []

    def __repr__(self):
        return (f"Lane({self.index}, hosts={len(self.tofetch)}, "+
                f"items={self.total_tofetch})")
