"""
services.builds_service - CRUD, clone and summary of car builds.

All session management is the caller's responsibility (open before,
close/commit after).  This keeps the service testable and allows
the caller to batch multiple operations in one transaction.

Setting values are normalised through the tuning codec on the way in,
so the stored text is always in the layout its input_type expects.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

import config
from db.models import (
    Car, CarBuild, CarBuildUpgrade, CarBuildSetting,
    Part, PartCategory, TuningSetting, TuningSection,
)
from services.validation import (
    ValidationError, require_text, optional_text, as_bool,
)
from tuning.values import (
    SettingSpec, DUAL_TYPES, apply_update, split_dual,
)
from tuning.display import is_zero_value, is_visible, display_lines
from tuning.gears import normalize_gear_updates, ordered_gears, gear_field_names
from tuning.projection import group_ordered, sort_section_entries

logger = logging.getLogger(__name__)

_SIDE_KEYS = ("front", "rear")


def setting_value(
    setting: TuningSetting,
    current: Optional[str],
    entry: dict[str, Any],
) -> str:
    """
    Work out the text to store for one setting entry.

    entry may carry a whole "value", or "front"/"rear" for a partial
    edit of a dual-valued setting (the other side comes from "value"
    when present, else from the current stored text).
    """
    spec = SettingSpec.from_setting(setting)
    try:
        if any(k in entry for k in _SIDE_KEYS):
            base = entry["value"] if "value" in entry else current
            return apply_update(spec, base, {k: entry[k] for k in _SIDE_KEYS if k in entry})

        text = "" if entry.get("value") is None else str(entry["value"]).strip()
        if not text:
            return ""
        if spec.input_type in DUAL_TYPES:
            front, rear = split_dual(text)
            return apply_update(spec, "", {"front": front, "rear": rear})
        return apply_update(spec, current, {"value": text})
    except ValueError as exc:
        raise ValidationError(f"{setting.name}: {exc}") from None


class BuildsService:

    # ── Create ─────────────────────────────────────────────────────────

    @staticmethod
    def create(session: Session, data: dict) -> CarBuild:
        car_id = require_text(data, "car_id", "Car ID")
        if session.get(Car, car_id) is None:
            raise ValidationError("Car not found")

        build = CarBuild(
            car_id=car_id,
            name=require_text(data, "name", "Build name", config.BUILD_NAME_MAX),
            description=optional_text(data, "description", "Description",
                                      config.BUILD_DESCRIPTION_MAX),
            is_public=as_bool(data.get("is_public"), default=True),
        )
        BuildsService._apply_gears(build, data)
        session.add(build)

        for entry in data.get("upgrades") or []:
            build.upgrades.append(BuildsService._make_upgrade(session, entry))
        for entry in data.get("settings") or []:
            build.settings.append(BuildsService._make_setting(session, entry, None))

        session.flush()
        return build

    # ── Read ───────────────────────────────────────────────────────────

    @staticmethod
    def get(session: Session, build_id: str) -> CarBuild | None:
        return session.get(CarBuild, build_id)

    @staticmethod
    def list(session: Session, car_id: str = "") -> list[CarBuild]:
        q = session.query(CarBuild)
        if car_id:
            q = q.filter(CarBuild.car_id == car_id)
        return q.order_by(CarBuild.updated_at.desc()).all()

    # ── Update ─────────────────────────────────────────────────────────

    @staticmethod
    def update(session: Session, build: CarBuild, data: dict) -> CarBuild:
        """
        Update scalar fields and gears.  When "upgrades" or "settings"
        is present the list is replaced as a whole.
        """
        if "name" in data:
            build.name = require_text(data, "name", "Build name", config.BUILD_NAME_MAX)
        if "description" in data:
            build.description = optional_text(data, "description", "Description",
                                              config.BUILD_DESCRIPTION_MAX)
        if "is_public" in data:
            build.is_public = as_bool(data["is_public"])
        BuildsService._apply_gears(build, data)

        if "upgrades" in data:
            build.upgrades.clear()
            for entry in data.get("upgrades") or []:
                build.upgrades.append(BuildsService._make_upgrade(session, entry))

        if "settings" in data:
            current = {s.setting_id: s.value for s in build.settings if s.setting_id}
            build.settings.clear()
            session.flush()
            for entry in data.get("settings") or []:
                prior = current.get(entry.get("setting_id"))
                build.settings.append(BuildsService._make_setting(session, entry, prior))

        session.flush()
        return build

    @staticmethod
    def update_setting(
        session: Session,
        build: CarBuild,
        setting_id: str,
        update: dict,
    ) -> CarBuildSetting:
        """
        Apply one partial edit to one setting value.

        The stored text is decoded, the edited side replaced, and the
        result encoded once, so edits to opposite sides never overwrite
        each other.
        """
        setting = session.get(TuningSetting, setting_id)
        if setting is None:
            raise ValidationError("Tuning setting not found")

        row = next((s for s in build.settings if s.setting_id == setting_id), None)
        if row is None:
            row = CarBuildSetting(
                setting_id=setting.id,
                category=setting.section.name,
                setting=setting.name,
                value="",
            )
            build.settings.append(row)

        row.value = setting_value(setting, row.value, update)
        session.flush()
        return row

    # ── Clone / Delete ─────────────────────────────────────────────────

    @staticmethod
    def clone(session: Session, build: CarBuild) -> CarBuild:
        copy = CarBuild(
            car_id=build.car_id,
            name=f"{build.name} (Copy)"[:config.BUILD_NAME_MAX],
            description=build.description,
            is_public=build.is_public,
        )
        for column in gear_field_names():
            setattr(copy, column, getattr(build, column))
        for u in build.upgrades:
            copy.upgrades.append(CarBuildUpgrade(
                category=u.category, part=u.part, part_id=u.part_id, value=u.value,
            ))
        for s in build.settings:
            copy.settings.append(CarBuildSetting(
                category=s.category, setting=s.setting, setting_id=s.setting_id,
                value=s.value,
            ))
        session.add(copy)
        session.flush()
        return copy

    @staticmethod
    def delete(session: Session, build: CarBuild) -> None:
        session.delete(build)
        session.flush()

    # ── Summary ────────────────────────────────────────────────────────

    @staticmethod
    def summary(session: Session, build: CarBuild) -> dict:
        """
        Read-only view: upgrades and settings grouped in display order,
        untouched (zero) settings and inapplicable options left out,
        gears in ratio order.
        """
        values_by_name: dict[str, Optional[str]] = {}
        for u in build.upgrades:
            name = u.part_ref.name if u.part_ref else u.part
            if name:
                values_by_name[name] = u.value
        for s in build.settings:
            name = s.setting_ref.name if s.setting_ref else s.setting
            if name:
                values_by_name[name] = s.value

        return {
            "build": {
                "id": build.id,
                "name": build.name,
                "description": build.description or "",
                "is_public": bool(build.is_public),
                "car": build.car.to_dict() if build.car else None,
            },
            "upgrades": BuildsService._upgrade_groups(session, build, values_by_name),
            "settings": BuildsService._setting_groups(session, build, values_by_name),
            "gears": ordered_gears(build.gear_values()),
        }

    @staticmethod
    def _upgrade_groups(session, build, values_by_name) -> list[dict]:
        order = {c.name: c.display_order for c in session.query(PartCategory)}
        entries = []
        for u in build.upgrades:
            category = u.part_ref.category.name if u.part_ref else (u.category or "")
            name = u.part_ref.name if u.part_ref else (u.part or "")
            if not is_visible(name, values_by_name):
                continue
            entries.append({"category": category, "name": name, "value": u.value})

        groups = group_ordered(entries, key=lambda e: e["category"],
                               group_order=lambda g: order.get(g, len(order) + 1))
        return [{"category": g, "items": sorted(items, key=lambda e: e["name"].lower())}
                for g, items in groups]

    @staticmethod
    def _setting_groups(session, build, values_by_name) -> list[dict]:
        order = {s.name: s.display_order for s in session.query(TuningSection)}
        entries = []
        for s in build.settings:
            meta = s.setting_ref
            spec = SettingSpec.from_setting(meta) if meta else SettingSpec()
            name = meta.name if meta else (s.setting or "")
            section = meta.section.name if meta else (s.category or "")
            value = s.value or ""

            if not value.strip():
                continue
            if is_zero_value(spec.input_type, value):
                continue
            if not is_visible(name, values_by_name):
                continue

            entries.append({
                "section": section,
                "name": name,
                "display_order": meta.display_order if meta else None,
                "input_type": spec.input_type.value,
                "value": value,
                "display": display_lines(spec, value),
            })

        groups = group_ordered(entries, key=lambda e: e["section"],
                               group_order=lambda g: order.get(g, len(order) + 1))
        return [{"section": g, "items": sort_section_entries(g, items)}
                for g, items in groups]

    # ── Private helpers ────────────────────────────────────────────────

    @staticmethod
    def _apply_gears(build: CarBuild, data: dict) -> None:
        try:
            gears = normalize_gear_updates(data)
        except ValueError as exc:
            raise ValidationError(str(exc)) from None
        for column, value in gears.items():
            setattr(build, column, value)

    @staticmethod
    def _make_upgrade(session: Session, entry: dict) -> CarBuildUpgrade:
        value = entry.get("value")
        value = None if value is None else str(value).strip() or None

        part_id = str(entry.get("part_id") or "").strip()
        if part_id:
            part = session.get(Part, part_id)
            if part is None:
                raise ValidationError(f"Part not found: {part_id}")
            # Keep the free-text columns filled so the legacy backfill
            # resolves new rows the same way.
            return CarBuildUpgrade(
                part_id=part.id, category=part.category.name, part=part.name, value=value,
            )

        category = str(entry.get("category") or "").strip()
        name = str(entry.get("part") or "").strip()
        if not category or not name:
            raise ValidationError("Each upgrade needs a part_id or category and part")
        logger.info("Upgrade stored by name only: %s:%s", category, name)
        return CarBuildUpgrade(category=category, part=name, value=value)

    @staticmethod
    def _make_setting(
        session: Session,
        entry: dict,
        current: Optional[str],
    ) -> CarBuildSetting:
        setting_id = str(entry.get("setting_id") or "").strip()
        if setting_id:
            setting = session.get(TuningSetting, setting_id)
            if setting is None:
                raise ValidationError(f"Tuning setting not found: {setting_id}")
            return CarBuildSetting(
                setting_id=setting.id,
                category=setting.section.name,
                setting=setting.name,
                value=setting_value(setting, current, entry),
            )

        category = str(entry.get("category") or "").strip()
        name = str(entry.get("setting") or "").strip()
        if not category or not name:
            raise ValidationError("Each setting needs a setting_id or category and setting")
        return CarBuildSetting(
            category=category, setting=name,
            value=str(entry.get("value") or "").strip(),
        )
