import sys
import logging


def getlogger(level=logging.WARNING):
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(filename)s:%(lineno)d %(message)s", datefmt="%Y-%m-%d-%H:%M:%S")
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(fmt)
    logger = logging.getLogger("tarback")
    logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(stream)
    logger.propagate = False
    return logger


def getlogger_print(level=logging.INFO):
    fmt = logging.Formatter("%(message)s")
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(fmt)
    logger_print = logging.getLogger("tarback.print")
    logger_print.setLevel(level)
    if not logger_print.handlers:
        logger_print.addHandler(stream)
    logger_print.propagate = False
    return logger_print


logger = getlogger()

logger_print = getlogger_print()
