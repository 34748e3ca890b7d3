# BENCHDOCK v1.0
'''Config discovery: wait until the configurator has written the shared site config.

The configurator container sets db_host, redis_cache and redis_queue one
`bench set-config` call at a time, so the file can be missing, half written
or only partially populated while we poll it.
'''

import json
import logging
import time
from pathlib import Path

from bootstrap.errors import ConfigIncomplete, ConfigMalformed
from bootstrap.waiter import await_condition

_log = logging.getLogger(__name__)

DEFAULT_CONFIG_DEADLINE = 120
DEFAULT_CONFIG_INTERVAL = 5.0


def read_site_config(path):
    '''Read the shared config artifact.

    Returns None if the file does not exist yet, the parsed mapping otherwise.
    Raises ConfigMalformed if the file cannot be read or decoded, or is not
    a JSON object.
    '''
    path = Path(path)
    try:
        content = path.read_text(encoding='utf-8')
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as e:
        raise ConfigMalformed(path, f"not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise ConfigMalformed(path, e.strerror or str(e)) from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigMalformed(path, e.msg) from e

    if not isinstance(data, dict):
        raise ConfigMalformed(path, f"expected an object, got {type(data).__name__}")

    return data


def _is_empty(value):
    if value is None or value is False:
        return True
    return isinstance(value, str) and not value.strip()


def missing_keys(config, keys):
    '''Return the subset of keys with no usable value in config'''
    if config is None:
        return set(keys)
    return {k for k in keys if _is_empty(config.get(k))}


def wait_for_config(path, keys, deadline=DEFAULT_CONFIG_DEADLINE,
                    interval=DEFAULT_CONFIG_INTERVAL, clock=time.monotonic, sleep=time.sleep):
    '''Poll path until every key in keys is non-empty in a single read.

    Returns the config mapping. Raises ConfigIncomplete once deadline
    seconds pass, or ConfigMalformed if the file never parsed.
    '''
    path = Path(path)
    keys = tuple(keys)
    state = {'missing': set(keys), 'error': None}

    def check():
        try:
            config = read_site_config(path)
        except ConfigMalformed as e:
            state['error'] = e
            state['missing'] = set(keys)
            return None

        state['error'] = None
        state['missing'] = missing_keys(config, keys)
        if state['missing']:
            return None
        return (config,)

    def on_retry(attempt, elapsed):
        if state['error'] is not None:
            _log.info("Waiting for %s to be written (%s)", path.name, state['error'].detail)
        else:
            _log.info("Waiting for %s to be created (missing: %s, %.0fs elapsed)",
                      path.name, ', '.join(sorted(state['missing'])), elapsed)

    _log.info("Waiting up to %ss for %s with keys: %s", deadline, path, ', '.join(keys))
    result = await_condition(check, interval=interval, deadline=deadline,
                             clock=clock, sleep=sleep, on_retry=on_retry)

    if result.ready:
        _log.info("%s found after %.1fs", path.name, result.elapsed)
        return result.value[0]

    if state['error'] is not None:
        _log.error("%s still malformed after %ss", path, deadline)
        raise state['error']

    _log.error("Could not find %s with required keys (missing: %s)",
               path, ', '.join(sorted(state['missing'])))
    raise ConfigIncomplete(path, state['missing'], deadline)
