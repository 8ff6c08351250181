# src/q8agent/orchestration/mongo_script.py
"""
Administrative mongosh script for tenant database users.

The script authenticates as the configured administrator, switches to the
tenant database and creates a readWrite user there. If the user already
exists (server error code 51003) the password is reset instead; any other
error is rethrown so mongosh exits non-zero.

Every interpolated value is emitted as a JSON string literal, which is also
a valid JavaScript string literal, so caller input cannot alter the script.
"""

import json
from typing import Optional

from ..models import DatabaseUserOutcome

USER_EXISTS_CODE = 51003

CREATED_MARKER = "User created successfully"
PASSWORD_UPDATED_MARKER = "User already exists, password updated"

_SCRIPT_TEMPLATE = """
db = db.getSiblingDB('admin');
db.auth({admin_user}, {admin_password});
db = db.getSiblingDB({database});
try {{
    db.createUser({{
        user: {user},
        pwd: {password},
        roles: [{{ role: 'readWrite', db: {database} }}]
    }});
    print({created_marker});
}} catch (e) {{
    if (e.code === {user_exists_code}) {{
        db.changeUserPassword({user}, {password});
        print({updated_marker});
    }} else {{
        throw e;
    }}
}}
"""


def build_create_user_script(
    admin_user: str,
    admin_password: str,
    database_name: str,
    new_user: str,
    new_password: str,
) -> str:
    """
    Render the create-or-reset user script.

    Args:
        admin_user: Administrative user from configuration
        admin_password: Administrative password from configuration
        database_name: Database the user is scoped to
        new_user: User to create
        new_password: Password to set

    Returns:
        Script body for ``mongosh --eval``
    """
    return _SCRIPT_TEMPLATE.format(
        admin_user=json.dumps(admin_user),
        admin_password=json.dumps(admin_password),
        database=json.dumps(database_name),
        user=json.dumps(new_user),
        password=json.dumps(new_password),
        created_marker=json.dumps(CREATED_MARKER),
        updated_marker=json.dumps(PASSWORD_UPDATED_MARKER),
        user_exists_code=USER_EXISTS_CODE,
    )


def parse_outcome(output: str) -> Optional[DatabaseUserOutcome]:
    """Which branch of the script ran, judged from its printed marker."""
    if PASSWORD_UPDATED_MARKER in output:
        return DatabaseUserOutcome.PASSWORD_UPDATED
    if CREATED_MARKER in output:
        return DatabaseUserOutcome.CREATED
    return None
