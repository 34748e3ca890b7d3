# BENCHDOCK v1.0 - Input validation and sanitization
import re

_NAME_RE = re.compile(r'^[a-zA-Z0-9][a-zA-Z0-9_.-]*$')
_TAG_RE = re.compile(r'^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$')


def validate_site_name(name):
    '''Validate a site (tenant) name.
    Site names become directories under sites/, so they must match
    [a-zA-Z0-9][a-zA-Z0-9_.-]* and contain no path separators.
    Returns sanitized name or raises ValueError.
    '''
    if not name or not isinstance(name, str):
        raise ValueError("Site name is required")

    name = name.strip()

    if len(name) > 128:
        raise ValueError("Site name too long (max 128 chars)")

    # Block path traversal
    if '..' in name or '/' in name or '\\' in name:
        raise ValueError("Invalid characters in site name")

    if not _NAME_RE.match(name):
        raise ValueError("Site name must start with alphanumeric and contain only letters, digits, _, ., -")

    return name


def validate_service_name(name):
    '''Validate a compose service name. Returns name or raises ValueError.'''
    if not name or not isinstance(name, str):
        raise ValueError("Service name is required")

    name = name.strip()
    if not _NAME_RE.match(name):
        raise ValueError(f"Invalid service name: {name}")

    return name


def validate_port(port):
    '''Validate port number. Returns int or raises ValueError.'''
    try:
        port = int(port)
    except (ValueError, TypeError):
        raise ValueError("Port must be a number")

    if not (1 <= port <= 65535):
        raise ValueError("Port must be between 1 and 65535")

    return port


def validate_image_tag(tag):
    '''Validate a docker image tag (the part after the colon)'''
    if not tag or not isinstance(tag, str):
        raise ValueError("Image tag is required")

    tag = tag.strip()
    if not _TAG_RE.match(tag):
        raise ValueError(f"Invalid image tag: {tag}")

    return tag
