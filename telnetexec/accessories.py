"""Accessory functions."""
# std imports
import importlib.metadata
import logging

__all__ = ('get_version', 'make_logger', 'repr_mapping')


def get_version():
    """Return the installed distribution version of telnetexec."""
    try:
        return importlib.metadata.version("telnetexec")
    except importlib.metadata.PackageNotFoundError:
        return 'unknown'


_DEFAULT_LOGFMT = ' '.join(('%(asctime)s',
                            '%(levelname)s',
                            '%(filename)s:%(lineno)d',
                            '%(message)s'))


def make_logger(name, loglevel='info', logfile=None, logfmt=_DEFAULT_LOGFMT):
    """Create and return simple logger for given arguments."""
    lvl = getattr(logging, loglevel.upper())
    logging.getLogger().setLevel(lvl)

    _cfg = {'format': logfmt}
    if logfile:
        _cfg['filename'] = logfile
    logging.basicConfig(**_cfg)
    return logging.getLogger(name)


def repr_mapping(mapping):
    """Return printable string, 'key=value [key=value ...]' for mapping."""
    return ' '.join('='.join(map(str, kv)) for kv in mapping.items())
