from __future__ import annotations

from pathlib import Path

from contentdeck.storage.db import Base, load_models


MIGRATION_PATH = Path(__file__).resolve().parents[1] / "migrations" / "versions" / "20241001_0001_contentdeck_core.py"


def test_core_migration_declares_every_mapped_table() -> None:
    load_models()
    source = MIGRATION_PATH.read_text(encoding="utf-8")

    for table_name in Base.metadata.tables:
        assert f'"{table_name}",' in source


def test_core_migration_declares_uniqueness_and_autoincrement_contract() -> None:
    source = MIGRATION_PATH.read_text(encoding="utf-8")

    assert "uq_videos_user_scheduled_for" in source
    assert "uq_subscriptions_user" in source
    assert "uq_usage_metrics_user" in source
    assert "uq_facebook_settings_user" in source
    assert "sqlite_autoincrement=True" in source
    assert "ck_usage_metrics_storage_non_negative" in source
