# tests/orchestration/test_mongo_script.py
"""Tests for the administrative database user script."""

import json

import pytest

from q8agent.models import DatabaseUserOutcome
from q8agent.orchestration.mongo_script import (
    CREATED_MARKER,
    PASSWORD_UPDATED_MARKER,
    USER_EXISTS_CODE,
    build_create_user_script,
    parse_outcome,
)


def render(**overrides):
    values = {
        "admin_user": "admin",
        "admin_password": "adminpw",
        "database_name": "acme_db",
        "new_user": "acme",
        "new_password": "secret",
    }
    values.update(overrides)
    return build_create_user_script(**values)


class TestBuildScript:

    def test_structure(self):
        script = render()
        assert "db.getSiblingDB('admin')" in script
        assert 'db.auth("admin", "adminpw")' in script
        assert 'db.getSiblingDB("acme_db")' in script
        assert "role: 'readWrite', db: \"acme_db\"" in script
        assert f"e.code === {USER_EXISTS_CODE}" in script
        assert 'db.changeUserPassword("acme", "secret")' in script
        assert "throw e;" in script

    def test_markers_printed(self):
        script = render()
        assert f"print({json.dumps(CREATED_MARKER)})" in script
        assert f"print({json.dumps(PASSWORD_UPDATED_MARKER)})" in script

    @pytest.mark.parametrize(
        "hostile",
        [
            "x'); db.dropDatabase(); ('",
            'x"); db.dropDatabase(); ("',
            "line\nbreak",
            "back\\slash",
        ],
    )
    def test_values_are_escaped(self, hostile):
        script = render(new_password=hostile)
        assert json.dumps(hostile) in script
        assert "db.dropDatabase(); (" not in script.replace(json.dumps(hostile), "")


class TestParseOutcome:

    def test_created(self):
        assert parse_outcome(f"Current Mongosh Log ID: 1\n{CREATED_MARKER}\n") is DatabaseUserOutcome.CREATED

    def test_password_updated(self):
        assert parse_outcome(PASSWORD_UPDATED_MARKER) is DatabaseUserOutcome.PASSWORD_UPDATED

    def test_unknown(self):
        assert parse_outcome("") is None
        assert parse_outcome("MongoServerError: not authorized") is None
