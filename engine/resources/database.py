"""
Game Database.

Handles loading and validation of static game data (skills, monsters,
champions). Entries live in `<root>/database/<category>/*.json`, either one
object per file or a list of objects, and are validated against
`<root>/schemas/<name>.schema.json`. Invalid entries are logged and skipped.
"""

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

# category folder -> schema file
CATEGORIES: dict[str, str] = {
    "skills": "skill.schema.json",
    "monsters": "monster.schema.json",
    "champions": "champion.schema.json",
}


class Database:
    """
    Central storage for static game data.
    """

    def __init__(self, data_path: Path | str):
        self._data_path = Path(data_path)
        self._schemas: dict[str, Any] = {}

        # Data stores
        self.skills: dict[str, Any] = {}
        self.monsters: dict[str, Any] = {}
        self.champions: dict[str, Any] = {}

        self.logger = logging.getLogger(__name__)

    def load_all(self) -> None:
        """Load all data from disk."""
        self._load_schemas()

        self.skills = self._load_category("skills", CATEGORIES["skills"])
        self.monsters = self._load_category("monsters", CATEGORIES["monsters"])
        self.champions = self._load_category("champions", CATEGORIES["champions"])

        self.logger.info(
            f"Loaded {len(self.skills)} skills, "
            f"{len(self.monsters)} monsters, "
            f"{len(self.champions)} champions."
        )

    def _load_schemas(self) -> None:
        """Load JSON schemas."""
        schema_dir = self._data_path / "schemas"
        if not schema_dir.exists():
            self.logger.warning(f"Schema directory not found: {schema_dir}")
            return

        for schema_file in schema_dir.glob("*.schema.json"):
            try:
                with open(schema_file, 'r', encoding='utf-8') as f:
                    self._schemas[schema_file.name] = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load schema {schema_file}: {e}")

    def _load_category(self, folder: str, schema_name: str) -> dict[str, Any]:
        """Load all JSON files in a category folder."""
        category_dir = self._data_path / "database" / folder
        data_store: dict[str, Any] = {}

        if not category_dir.exists():
            self.logger.warning(f"Data directory not found: {category_dir}")
            return data_store

        schema = self._schemas.get(schema_name)
        if not schema:
            self.logger.warning(f"No schema found for {folder} ({schema_name})")
            return data_store

        for file_path in sorted(category_dir.glob("*.json")):
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load {file_path}: {e}")
                continue

            entries = data if isinstance(data, list) else [data]
            for entry in entries:
                try:
                    jsonschema.validate(instance=entry, schema=schema)
                except jsonschema.ValidationError as e:
                    self.logger.error(f"Validation error in {file_path}: {e.message}")
                    continue

                if entry['id'] in data_store:
                    self.logger.warning(f"Duplicate {folder} id '{entry['id']}' in {file_path}")
                data_store[entry['id']] = entry

        return data_store

    def get_skill(self, skill_id: str) -> dict[str, Any] | None:
        return self.skills.get(skill_id)

    def get_monster(self, monster_id: str) -> dict[str, Any] | None:
        return self.monsters.get(monster_id)

    def get_champion(self, champion_id: str) -> dict[str, Any] | None:
        return self.champions.get(champion_id)
