"""
Flat-file user bookkeeping.

user_ids.csv:         username,id   (no header; last row wins for duplicate names)
user_id_counter.txt:  highest id issued so far
user_roles.csv:       username,role (role lower-cased on load)

Usernames are stored exactly as given; csv quoting keeps commas in a name
intact, so a name always reads back as the same key.
"""
import logging
from typing import Dict

from checkout.repositories.base import (
    FlatFile, SkippedRowCounter, UserIdentityRepository, RoleRepository
)
from checkout.utils.number_format import parse_int

logger = logging.getLogger(__name__)


class CsvUserIdentityRepository(SkippedRowCounter, UserIdentityRepository):

    def __init__(self, ids_path, counter_path, start_value: int = 100):
        self.ids_file = FlatFile(ids_path)
        self.counter_file = FlatFile(counter_path)
        self.start_value = start_value

    def load_ids(self) -> Dict[str, int]:
        self._reset_skipped()
        ids = {}
        for line_number, row in self.ids_file.read_rows():
            if len(row) < 2 or not row[0].strip():
                self._skip(self.ids_file.path.name, line_number, 'expected username,id')
                continue
            try:
                ids[row[0]] = parse_int(row[1], minimum=1)
            except ValueError as e:
                # header rows land here too
                self._skip(self.ids_file.path.name, line_number, e)
        return ids

    def save_ids(self, ids: Dict[str, int]) -> None:
        self.ids_file.write_rows(
            [name, user_id] for name, user_id in ids.items()
        )

    def read_counter(self) -> int:
        text = self.counter_file.read_text()
        if text is None or not text.strip():
            return self.start_value
        try:
            return parse_int(text)
        except ValueError:
            logger.warning(f"[USERS] Malformed {self.counter_file.path.name} ({text.strip()!r}), "
                           f"falling back to {self.start_value}")
            return self.start_value

    def write_counter(self, value: int) -> None:
        self.counter_file.write_text(str(value))


class CsvRoleRepository(SkippedRowCounter, RoleRepository):

    def __init__(self, path):
        self.file = FlatFile(path)

    def load(self) -> Dict[str, str]:
        self._reset_skipped()
        roles = {}
        for line_number, row in self.file.read_rows():
            if len(row) < 2 or not row[0].strip() or not row[1].strip():
                self._skip(self.file.path.name, line_number, 'expected username,role')
                continue
            roles[row[0]] = row[1].strip().lower()
        logger.debug(f"[ROLES] Loaded {len(roles)} roles ({self.skipped_rows} skipped)")
        return roles

    def save(self, roles: Dict[str, str]) -> None:
        self.file.write_rows([name, role] for name, role in roles.items())
