import logging

FORMATTER = logging.Formatter('[%(levelname)s] %(asctime)s %(message)s')

LOGGER_NAME = 'fetch-scheduler'

all_loggers_map = {}

def stream_handler():
    h = logging.StreamHandler()
    h.setFormatter(FORMATTER)
    return h

def logger():
    global all_loggers_map

    if all_loggers_map.get(LOGGER_NAME):
        return all_loggers_map.get(LOGGER_NAME)
    else:
        logger = logging.getLogger(LOGGER_NAME)
        for h in list(logger.handlers):
            logger.removeHandler(h)
        logger.propagate = False
        logger.setLevel(logging.DEBUG)
        logger.addHandler(stream_handler())

        all_loggers_map[LOGGER_NAME] = logger
        return logger

# set_level changes the level of the shared logger. The name must be one of
# the standard logging level names.
def set_level(level_name):
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level '{level_name}'")
    logger().setLevel(level)
