from io import BytesIO
import os
from threading import Lock

from warcio.statusandheaders import StatusAndHeaders
from warcio.warcwriter import WARCWriter

from . import log

logger = log.logger()

# Headers describing the transfer, not the payload. urllib3 has already
# undone them by the time the body is archived.
_TRANSFER_HEADERS = ['content-encoding', 'transfer-encoding', 'content-length']

# WarcArchive appends fetched responses to a gzipped WARC file. Every fetch
# thread of a lane writes to the same archive, so writes are serialized.
class WarcArchive:
    def __init__(self, fpath):
        self.fpath = fpath
        self.num_records = 0
        self._lock = Lock()
        self._fout = open(fpath, 'ab')
        self._writer = WARCWriter(self._fout, gzip=True)

    def write_response(self, url, status, reason, headers, data):
        http_headers = StatusAndHeaders(
            f"{status} {reason or ''}".strip(),
            [(k, v) for k, v in headers
             if k.lower() not in _TRANSFER_HEADERS],
            protocol='HTTP/1.1',
        )
        record = self._writer.create_warc_record(
            url, 'response', payload=BytesIO(data), http_headers=http_headers)

        with self._lock:
            self._writer.write_record(record)
            self.num_records += 1

    def close(self):
        with self._lock:
            self._fout.close()
        logger.info(f"Archived {self.num_records} responses to '{self.fpath}'.")

def lane_archive_path(output_path, lane_index):
    dirname, basename = os.path.split(output_path)
    return os.path.join(dirname, str(lane_index) + "_" + basename)
