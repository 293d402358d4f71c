import logging

_loggers = {}


def get_logger(name="bamdemux"):
    # Based on ipython traitlets
    global _loggers

    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
        # Libraries stay silent unless the application configures logging.
        _loggers[name].addHandler(logging.NullHandler())

    return _loggers[name]
