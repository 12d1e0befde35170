"""
Repository interfaces and the flat-file plumbing shared by their implementations.

Each store is read wholesale into memory and written back wholesale (or appended
to). Pricing code only sees the interfaces, so any of them can be replaced by a
transactional store without touching the services.
"""
import csv
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from checkout.exceptions import ParseError, StorageError

logger = logging.getLogger(__name__)

Row = List[str]


def sanitize_field(value) -> str:
    """Make a value safe for an unquoted comma-separated column."""
    return str(value).replace(',', ' ').replace('\r', ' ').replace('\n', ' ')


class FlatFile:
    """
    A single line-oriented, comma-separated file.

    A missing file reads as empty. Any other OS failure is raised as StorageError.
    Every handle is opened in a ``with`` block so it is released on error paths too.
    """

    def __init__(self, path):
        self.path = Path(path)

    def read_rows(self) -> Iterator[Tuple[int, Row]]:
        """Yield (line_number, fields) for every non-blank line."""
        if not self.path.exists():
            return
        try:
            with self.path.open('r', newline='', encoding='utf-8') as f:
                for line_number, row in enumerate(csv.reader(f), start=1):
                    if not row or not any(field.strip() for field in row):
                        continue
                    yield line_number, row
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            logger.error(f"[STORAGE] Error reading {self.path.name}: {e}")
            raise StorageError(f'Error reading {self.path.name}: {e}', self.path)

    def read_text(self) -> Optional[str]:
        """Whole file contents, or None if it does not exist."""
        if not self.path.exists():
            return None
        try:
            with self.path.open('r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"[STORAGE] Error reading {self.path.name}: {e}")
            raise StorageError(f'Error reading {self.path.name}: {e}', self.path)

    def write_rows(self, rows: Iterable[Sequence]) -> None:
        """Replace the whole file."""
        def _write(f):
            writer = csv.writer(f, lineterminator='\n')
            for row in rows:
                writer.writerow(row)
        self._replace(_write)

    def write_text(self, text: str) -> None:
        self._replace(lambda f: f.write(text))

    def append_rows(self, rows: Sequence[Sequence], header: Optional[Sequence] = None) -> None:
        """
        Append rows, writing ``header`` first when the file does not exist yet.

        Rows are rendered up front and written with a single call. A file whose
        last line is unterminated gets its newline first.
        """
        lines = []
        if header is not None and not self.path.exists():
            lines.append(','.join(header))
        lines.extend(','.join(str(field) for field in row) for row in rows)
        if not lines:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            prefix = '' if self._ends_with_newline() else '\n'
            with self.path.open('a', newline='', encoding='utf-8') as f:
                f.write(prefix + '\n'.join(lines) + '\n')
        except OSError as e:
            logger.error(f"[STORAGE] Error appending to {self.path.name}: {e}")
            raise StorageError(f'Error writing {self.path.name}: {e}', self.path)

    def _ends_with_newline(self) -> bool:
        """True for a missing or empty file too. Raises OSError."""
        if not self.path.exists():
            return True
        with self.path.open('rb') as f:
            f.seek(0, os.SEEK_END)
            if f.tell() == 0:
                return True
            f.seek(-1, os.SEEK_END)
            return f.read(1) in (b'\n', b'\r')

    def _replace(self, write_fn) -> None:
        # Write a sibling temp file then swap it in, so readers never see half a file
        tmp = self.path.with_name(self.path.name + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open('w', newline='', encoding='utf-8') as f:
                write_fn(f)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error(f"[STORAGE] Error writing {self.path.name}: {e}")
            try:
                tmp.unlink()
            except OSError:
                pass
            raise StorageError(f'Error writing {self.path.name}: {e}', self.path)


class SkippedRowCounter:
    """Mixin: records malformed rows skipped during the last load as ParseErrors."""

    skipped_rows: int = 0
    parse_errors: Sequence[ParseError] = ()

    def _reset_skipped(self) -> None:
        self.skipped_rows = 0
        self.parse_errors = []

    def _skip(self, source: str, line_number: int, reason) -> None:
        self.skipped_rows += 1
        self.parse_errors.append(ParseError(str(reason), source, line_number))
        logger.warning(f"[STORAGE] Skipping malformed row {source}:{line_number}: {reason}")


# ============================================================================
# INTERFACES
# ============================================================================

class CartSnapshotRepository(ABC):
    """Whole-state storage of every user's cart."""

    @abstractmethod
    def load(self) -> Dict[str, 'Cart']:
        ...

    @abstractmethod
    def save(self, carts: Dict[str, 'Cart']) -> None:
        ...


class UserIdentityRepository(ABC):
    """Username -> id mapping plus the durable id counter."""

    @abstractmethod
    def load_ids(self) -> Dict[str, int]:
        ...

    @abstractmethod
    def save_ids(self, ids: Dict[str, int]) -> None:
        ...

    @abstractmethod
    def read_counter(self) -> int:
        ...

    @abstractmethod
    def write_counter(self, value: int) -> None:
        ...


class RoleRepository(ABC):

    @abstractmethod
    def load(self) -> Dict[str, str]:
        ...

    @abstractmethod
    def save(self, roles: Dict[str, str]) -> None:
        ...


class OfferRepository(ABC):

    @abstractmethod
    def load(self) -> List['OfferRule']:
        ...

    @abstractmethod
    def append(self, rule: 'OfferRule') -> None:
        ...

    @abstractmethod
    def remove_for_product(self, product_id: int) -> int:
        ...


class CouponRepository(ABC):

    @abstractmethod
    def load(self) -> List['CouponRule']:
        ...

    @abstractmethod
    def append(self, rule: 'CouponRule') -> None:
        ...

    @abstractmethod
    def remove(self, code: str) -> int:
        ...


class PurchaseHistoryRepository(ABC):
    """Append-only purchase log."""

    @abstractmethod
    def append(self, records: Sequence['PurchaseRecord']) -> None:
        ...

    @abstractmethod
    def load(self) -> List['PurchaseRecord']:
        ...
