"""Tests for services/contents_service.py - Installed runtime profiles."""

import json

from cellar.models.content_model import ContentType


def write_profile(contents_dir, type_dir, folder, profile):
    install_dir = contents_dir / type_dir / folder
    install_dir.mkdir(parents=True)
    (install_dir / "profile.json").write_text(json.dumps(profile))
    return install_dir


class TestContentsService:
    def test_missing_contents_dir(self, contents_service):
        assert contents_service.sync_contents() == []

    def test_sync_and_filter(self, contents_service, app_config):
        wine_dir = write_profile(
            app_config.contents_dir,
            "wine",
            "9.0-1",
            {"type": "Wine", "versionName": "9.0", "versionCode": 1, "wine": {"prefixPack": "prefixPack.txz"}},
        )
        write_profile(
            app_config.contents_dir,
            "dxvk",
            "2.3-0",
            {"type": "DXVK", "versionName": "2.3", "versionCode": 0, "description": "dxvk"},
        )

        profiles = contents_service.sync_contents()

        assert sorted(p.entry_name for p in profiles) == ["dxvk-2.3-0", "wine-9.0-1"]
        [wine] = contents_service.get_profiles(ContentType.WINE)
        assert wine.install_dir == wine_dir
        assert wine.wine_prefix_pack == "prefixPack.txz"
        assert contents_service.get_profile_by_entry_name("dxvk-2.3-0").description == "dxvk"
        assert contents_service.get_source_file(wine, "prefixPack.txz") == wine_dir / "prefixPack.txz"

    def test_bad_profiles_are_skipped(self, contents_service, app_config):
        write_profile(app_config.contents_dir, "wine", "no-version", {"type": "Wine"})
        broken = app_config.contents_dir / "wine" / "broken"
        broken.mkdir()
        (broken / "profile.json").write_text("{")
        (app_config.contents_dir / "wine" / "empty").mkdir()

        assert contents_service.sync_contents() == []
        assert contents_service.get_profile_by_entry_name("wine-9.0-1") is None
