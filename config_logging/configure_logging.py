import functools
import logging
import logging.config

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def configure_logging(level=logging.INFO, filename=None):
    """Configures the root logger for the form and the CLI. Logs go to stderr
    unless a filename is given.
    """
    logging.basicConfig(
        filename=filename,
        level=level,
        format=LOG_FORMAT,
    )


def log_arguments(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        # Log the function name and its arguments
        arg_str = ', '.join([repr(a) for a in args] + [f"{k}={v!r}" for k, v in kwargs.items()])
        logging.info(f"Function {func.__name__} called with arguments: {arg_str}")
        return func(*args, **kwargs)
    return wrapper
