class FetcherError(Exception):
    pass

# ConfigurationError is fatal: the run is aborted before any work is
# scheduled.
class ConfigurationError(FetcherError):
    pass

class UsageError(FetcherError):
    pass

# PipelineError means the filter, partition or execute stage could not be
# started or did not complete.
class PipelineError(FetcherError):
    pass
