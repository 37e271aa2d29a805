"""
import_engine.report - Structured results of a reference-data migration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable


@dataclass
class ImportReport:
    """One CSV → Category/Item stage."""
    stage: str
    total_rows: int = 0
    skipped: int = 0                 # blank category or item
    categories: int = 0
    items: int = 0
    errors: list[dict] = field(default_factory=list)   # [{row, reason}]

    def add_error(self, row: str, reason: str):
        self.errors.append({"row": row, "reason": reason})

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "total_rows": self.total_rows,
            "skipped": self.skipped,
            "categories": self.categories,
            "items": self.items,
            "errors": self.errors,
        }


@dataclass
class CatalogReport:
    """One flat CSV → cars or tracks stage."""
    stage: str
    total_rows: int = 0
    skipped: int = 0                 # no name
    created: int = 0
    updated: int = 0
    errors: list[dict] = field(default_factory=list)   # [{row, reason}]

    def add_error(self, row: str, reason: str):
        self.errors.append({"row": row, "reason": reason})

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "total_rows": self.total_rows,
            "skipped": self.skipped,
            "created": self.created,
            "updated": self.updated,
            "errors": self.errors,
        }


@dataclass
class BackfillReport:
    """Foreign-key backfill of one legacy build table."""
    table: str
    total: int = 0
    migrated: int = 0
    failed: int = 0
    unmatched: list[str] = field(default_factory=list)   # "category:item"
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "table": self.table,
            "total": self.total,
            "migrated": self.migrated,
            "failed": self.failed,
            "unmatched": self.unmatched,
            "error": self.error,
        }


@dataclass
class VerifyReport:
    """Row counts after the run.  Observational only."""
    counts: dict[str, int] = field(default_factory=dict)
    linked: dict[str, int] = field(default_factory=dict)   # rows with FK set

    def to_dict(self) -> dict:
        return {"counts": self.counts, "linked": self.linked}


@dataclass
class MigrationReport:
    catalogs: list[CatalogReport] = field(default_factory=list)
    imports: list[ImportReport] = field(default_factory=list)
    backfills: list[BackfillReport] = field(default_factory=list)
    verify: VerifyReport | None = None

    def to_dict(self) -> dict:
        return {
            "catalogs": [c.to_dict() for c in self.catalogs],
            "imports": [r.to_dict() for r in self.imports],
            "backfills": [b.to_dict() for b in self.backfills],
            "verify": self.verify.to_dict() if self.verify else None,
        }

    def print_summary(self, out: Callable[[str], None] = print) -> None:
        for c in self.catalogs:
            out(f"  {c.stage}: {c.created} created, {c.updated} updated "
                f"({c.total_rows} rows, {c.skipped} skipped, "
                f"{len(c.errors)} errors)")
        for r in self.imports:
            out(f"  {r.stage}: {r.categories} categories, {r.items} items "
                f"({r.total_rows} rows, {r.skipped} skipped, "
                f"{len(r.errors)} errors)")
        for b in self.backfills:
            out(f"  {b.table}: {b.migrated} migrated, {b.failed} failed")

        if self.verify is None:
            return
        out("")
        out("  Migration Summary:")
        out("  ------------------")
        for table, count in self.verify.counts.items():
            if table in self.verify.linked:
                out(f"  {table:<22}{self.verify.linked[table]} / {count} migrated")
            else:
                out(f"  {table:<22}{count}")
