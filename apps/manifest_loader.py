# BENCHDOCK v1.0 - apps.json loader (the list of apps baked into the image)
import base64
import json
from pathlib import Path

SAMPLE_APPS = [
    {'url': 'https://github.com/frappe/erpnext', 'branch': 'version-15'},
    {'url': 'https://github.com/frappe/hrms', 'branch': 'version-15'},
    {'url': 'https://github.com/frappe/payments', 'branch': 'version-15'},
]


def load_apps_config(apps_file):
    '''Load and validate apps.json.
    Returns the list of app entries or raises ValueError with a readable message.
    '''
    apps_file = Path(apps_file)
    if not apps_file.exists():
        raise ValueError(f"{apps_file.name} not found. Run 'init' first.")

    try:
        with open(apps_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {apps_file.name}: {e.msg} (line {e.lineno})")

    if not isinstance(data, list):
        raise ValueError(f"{apps_file.name} must contain a list of apps")

    for i, entry in enumerate(data, 1):
        if not isinstance(entry, dict):
            raise ValueError(f"App #{i} in {apps_file.name} must be an object")
        if not isinstance(entry.get('url'), str) or not entry['url'].strip():
            raise ValueError(f"App #{i} in {apps_file.name} has no url")
        if 'branch' in entry and not isinstance(entry['branch'], str):
            raise ValueError(f"App #{i} in {apps_file.name} has an invalid branch")

    return data


def app_name_from_url(url):
    '''https://github.com/frappe/erpnext(.git) -> erpnext'''
    name = url.rstrip('/').rsplit('/', 1)[-1]
    return name[:-4] if name.endswith('.git') else name


def encode_apps_config(apps_file):
    '''Validated apps.json as the base64 string the Dockerfile expects'''
    apps = load_apps_config(apps_file)
    raw = json.dumps(apps).encode('utf-8')
    return base64.b64encode(raw).decode('ascii')


def write_sample_apps(apps_file):
    with open(apps_file, 'w', encoding='utf-8') as f:
        json.dump(SAMPLE_APPS, f, indent=2)
        f.write('\n')
