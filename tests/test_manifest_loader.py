"""Tests for apps.json loading and validation."""

import base64
import json

import pytest

from apps.manifest_loader import (SAMPLE_APPS, app_name_from_url, encode_apps_config,
                                  load_apps_config, write_sample_apps)


def test_missing_file_points_to_init(tmp_path):
    with pytest.raises(ValueError, match="Run 'init' first"):
        load_apps_config(tmp_path / "apps.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "apps.json"
    path.write_text('[{"url": ')
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_apps_config(path)


@pytest.mark.parametrize("content,message", [
    ({"url": "x"}, "list of apps"),
    (["https://github.com/frappe/erpnext"], "must be an object"),
    ([{"branch": "version-15"}], "has no url"),
    ([{"url": "https://github.com/frappe/hrms", "branch": 15}], "invalid branch"),
])
def test_structure_errors(tmp_path, content, message):
    path = tmp_path / "apps.json"
    path.write_text(json.dumps(content))
    with pytest.raises(ValueError, match=message):
        load_apps_config(path)


def test_sample_is_valid_and_encodes(tmp_path):
    path = tmp_path / "apps.json"
    write_sample_apps(path)

    assert load_apps_config(path) == SAMPLE_APPS
    decoded = json.loads(base64.b64decode(encode_apps_config(path)))
    assert [a["url"] for a in decoded] == [a["url"] for a in SAMPLE_APPS]


@pytest.mark.parametrize("url,name", [
    ("https://github.com/frappe/erpnext", "erpnext"),
    ("https://github.com/frappe/hrms.git", "hrms"),
    ("https://github.com/frappe/payments/", "payments"),
])
def test_app_name_from_url(url, name):
    assert app_name_from_url(url) == name
