import logging
import warnings

from pydantic_core import to_jsonable_python

from arns_migrate import env

# NOTE: Repeated setup replaces the handler with this name
HANDLER_NAME = 'arns_migrate'


def set_up_logging() -> None:
    """Send log records to stderr; stdout is reserved for command output"""
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)

    if env.JSON_LOG:
        from pythonjsonlogger import jsonlogger

        handler.setFormatter(
            jsonlogger.JsonFormatter(  # type: ignore[no-untyped-call]
                '%(levelname)s %(name)s %(message)s',
                json_default=to_jsonable_python,
            )
        )
    else:
        handler.setFormatter(logging.Formatter('%(levelname)-8s %(name)-24s %(message)s'))

    root = logging.getLogger()
    for existing in tuple(root.handlers):
        if existing.get_name() == HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)

    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    if env.DEBUG:
        logging.getLogger('arns_migrate').setLevel(logging.DEBUG)


def set_up_process() -> None:
    """Route warnings through logging"""
    if env.TEST:
        return
    logging.captureWarnings(True)
    warnings.formatwarning = lambda msg, *a, **kw: str(msg)
