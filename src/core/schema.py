"""SQLite schema management (code-first approach)."""

import logging

from src.core.db_client import SQLiteClient


logger = logging.getLogger(__name__)


# Central list of all collections in the schema, parents first
COLLECTIONS = [
    "members",
    "tasks",
    "day_templates",
    "day_template_items",
    "week_templates",
    "week_template_days",
    "week_overrides",
    "task_overrides",
]


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS members (
    id TEXT PRIMARY KEY,
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    family_id TEXT NOT NULL,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL DEFAULT '',
    email TEXT,
    avatar_url TEXT,
    is_virtual INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    family_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    color TEXT NOT NULL,
    icon TEXT NOT NULL,
    default_start_time TEXT NOT NULL,
    default_duration INTEGER NOT NULL CHECK (default_duration BETWEEN 1 AND 1440),
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS day_templates (
    id TEXT PRIMARY KEY,
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    family_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT
);

CREATE TABLE IF NOT EXISTS day_template_items (
    id TEXT PRIMARY KEY,
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    day_template_id TEXT NOT NULL REFERENCES day_templates (id) ON DELETE CASCADE,
    task_id TEXT NOT NULL REFERENCES tasks (id) ON DELETE CASCADE,
    member_id TEXT REFERENCES members (id) ON DELETE SET NULL,
    override_time TEXT,
    override_duration INTEGER,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS week_templates (
    id TEXT PRIMARY KEY,
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    family_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    is_default INTEGER NOT NULL DEFAULT 0,
    apply_rule TEXT NOT NULL DEFAULT 'NONE' CHECK (apply_rule IN ('NONE', 'EVEN_WEEKS', 'ODD_WEEKS')),
    priority INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS week_template_days (
    id TEXT PRIMARY KEY,
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    week_template_id TEXT NOT NULL REFERENCES week_templates (id) ON DELETE CASCADE,
    day_of_week INTEGER NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
    day_template_id TEXT NOT NULL REFERENCES day_templates (id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS week_overrides (
    id TEXT PRIMARY KEY,
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    family_id TEXT NOT NULL,
    week_start_date TEXT NOT NULL,
    week_template_id TEXT REFERENCES week_templates (id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS task_overrides (
    id TEXT PRIMARY KEY,
    created TEXT NOT NULL,
    updated TEXT NOT NULL,
    week_override_id TEXT NOT NULL REFERENCES week_overrides (id) ON DELETE CASCADE,
    assigned_date TEXT NOT NULL,
    task_id TEXT NOT NULL REFERENCES tasks (id) ON DELETE CASCADE,
    action TEXT NOT NULL CHECK (action IN ('ADD', 'REMOVE', 'REASSIGN')),
    original_member_id TEXT REFERENCES members (id) ON DELETE SET NULL,
    new_member_id TEXT REFERENCES members (id) ON DELETE SET NULL,
    override_time TEXT,
    override_duration INTEGER
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_week_template_day
    ON week_template_days (week_template_id, day_of_week);
CREATE UNIQUE INDEX IF NOT EXISTS idx_week_override_family_week
    ON week_overrides (family_id, week_start_date);
CREATE INDEX IF NOT EXISTS idx_task_override_slot
    ON task_overrides (week_override_id, assigned_date, task_id);
CREATE INDEX IF NOT EXISTS idx_week_template_family
    ON week_templates (family_id, is_active);
"""


async def init_db(client: SQLiteClient) -> None:
    """Create every table and index if missing."""
    await client.execute_script(SCHEMA_SQL)
    logger.info("Database schema initialized", extra={"collections": len(COLLECTIONS)})
