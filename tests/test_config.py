from __future__ import annotations

import unittest
from dataclasses import FrozenInstanceError

from mathsafe import DEFAULT_CONFIG, AllowLevel, AttributeKind, PolicyConfig, build_config


class TestPolicyConfigDefaults(unittest.TestCase):
    def test_default_levels(self) -> None:
        assert DEFAULT_CONFIG.level(AttributeKind.URL) is AllowLevel.SAFE
        assert DEFAULT_CONFIG.level(AttributeKind.CLASS) is AllowLevel.SAFE
        assert DEFAULT_CONFIG.level(AttributeKind.CSS_ID) is AllowLevel.SAFE
        assert DEFAULT_CONFIG.level(AttributeKind.STYLE) is AllowLevel.SAFE
        assert DEFAULT_CONFIG.level(AttributeKind.FONT_SIZE) is AllowLevel.ALL
        assert DEFAULT_CONFIG.level(AttributeKind.REQUIRE) is AllowLevel.SAFE

    def test_default_bounds_and_tables(self) -> None:
        assert DEFAULT_CONFIG.size_min == 0.7
        assert DEFAULT_CONFIG.size_max == 1.44
        assert DEFAULT_CONFIG.safe_protocols["https"] is True
        assert DEFAULT_CONFIG.safe_protocols["javascript"] is False
        assert DEFAULT_CONFIG.safe_styles["backgroundColor"] is True
        assert DEFAULT_CONFIG.safe_require["verb"] is True
        assert DEFAULT_CONFIG.safe_require["autobold"] is False

    def test_require_table_keys_are_lowercased(self) -> None:
        assert DEFAULT_CONFIG.safe_require["html"] is True
        assert DEFAULT_CONFIG.safe_require["noerrors"] is False
        assert "HTML" not in DEFAULT_CONFIG.safe_require

    def test_font_size_style_enabled_when_font_size_is_all(self) -> None:
        assert DEFAULT_CONFIG.safe_styles["fontSize"] is True


class TestPolicyConfigNormalization(unittest.TestCase):
    def test_partial_allow_is_completed_with_defaults(self) -> None:
        config = PolicyConfig(allow={"url": "none"})
        assert config.level(AttributeKind.URL) is AllowLevel.NONE
        assert config.level(AttributeKind.FONT_SIZE) is AllowLevel.ALL

    def test_level_names_must_match_exactly(self) -> None:
        config = PolicyConfig(allow={AttributeKind.STYLE: "ALL", AttributeKind.CLASS: " none "})
        assert config.level(AttributeKind.STYLE) is AllowLevel.SAFE
        assert config.level(AttributeKind.CLASS) is AllowLevel.SAFE

        config = PolicyConfig(allow={AttributeKind.STYLE: "all", AttributeKind.CLASS: "none"})
        assert config.level(AttributeKind.STYLE) is AllowLevel.ALL
        assert config.level(AttributeKind.CLASS) is AllowLevel.NONE

    def test_unknown_level_behaves_as_safe(self) -> None:
        config = PolicyConfig(allow={"url": "sometimes", "class": 3})
        assert config.level(AttributeKind.URL) is AllowLevel.SAFE
        assert config.level(AttributeKind.CLASS) is AllowLevel.SAFE

    def test_interlock_disables_font_size_style(self) -> None:
        for level in ("safe", "none"):
            config = PolicyConfig(allow={"font_size": level})
            assert config.safe_styles["fontSize"] is False

    def test_interlock_applies_even_without_font_size_entry(self) -> None:
        config = PolicyConfig(allow={"font_size": "safe"}, safe_styles={"color": True})
        assert config.safe_styles == {"color": True, "fontSize": False}

    def test_interlock_covers_every_font_size_spelling(self) -> None:
        config = build_config({"allow": {"fontsize": "safe"}, "safeStyles": {"font-size": True, "Font-Size": True}})
        assert config.safe_styles["fontSize"] is False
        assert config.safe_styles["font-size"] is False
        assert config.safe_styles["Font-Size"] is False
        assert config.safe_styles["color"] is True

        reopened = build_config({"allow": {"fontsize": "all"}, "safeStyles": {"font-size": True}})
        assert reopened.safe_styles["font-size"] is True

    def test_protocols_are_lowercased_last_spelling_wins(self) -> None:
        config = PolicyConfig(safe_protocols={"http": True, "HTTP": False, "Ftp": 1})
        assert dict(config.safe_protocols) == {"http": False, "ftp": True}

    def test_config_is_frozen(self) -> None:
        with self.assertRaises(FrozenInstanceError):
            DEFAULT_CONFIG.size_max = 10  # type: ignore[misc]

    def test_tables_are_read_only(self) -> None:
        with self.assertRaises(TypeError):
            DEFAULT_CONFIG.safe_protocols["javascript"] = True  # type: ignore[index]
        with self.assertRaises(TypeError):
            DEFAULT_CONFIG.allow[AttributeKind.URL] = AllowLevel.ALL  # type: ignore[index]

    def test_sizes_are_floats(self) -> None:
        config = PolicyConfig(size_min=1, size_max=2)
        assert isinstance(config.size_min, float)
        assert config.size_max == 2.0


class TestBuildConfig(unittest.TestCase):
    def test_no_overrides_returns_base(self) -> None:
        assert build_config() is DEFAULT_CONFIG
        base = build_config({"sizeMax": 2})
        assert build_config(None, base=base) is base

    def test_allow_is_merged_per_kind(self) -> None:
        config = build_config({"allow": {"URLs": "none"}})
        assert config.level(AttributeKind.URL) is AllowLevel.NONE
        assert config.level(AttributeKind.CLASS) is AllowLevel.SAFE
        assert config.level(AttributeKind.FONT_SIZE) is AllowLevel.ALL

    def test_mathjax_and_python_kind_names(self) -> None:
        config = build_config(
            {"allow": {"classes": "all", "cssIDs": "none", "styles": "all", "fontsize": "safe", "require": "none"}}
        )
        assert config.level(AttributeKind.CLASS) is AllowLevel.ALL
        assert config.level(AttributeKind.CSS_ID) is AllowLevel.NONE
        assert config.level(AttributeKind.STYLE) is AllowLevel.ALL
        assert config.level(AttributeKind.FONT_SIZE) is AllowLevel.SAFE
        assert config.level(AttributeKind.REQUIRE) is AllowLevel.NONE

        same = build_config(
            {"allow": {"class": "all", "css_id": "none", "style": "all", "font_size": "safe", "require": "none"}}
        )
        assert same == config

    def test_tables_are_merged_per_entry(self) -> None:
        config = build_config({"safeProtocols": {"ftp": True, "file": False}})
        assert config.safe_protocols["ftp"] is True
        assert config.safe_protocols["file"] is False
        assert config.safe_protocols["http"] is True
        assert config.safe_protocols["https"] is True

    def test_snake_case_option_names(self) -> None:
        config = build_config(
            {
                "size_min": 0.5,
                "size_max": 2,
                "safe_styles": {"position": True},
                "safe_require": {"Physics": True},
            }
        )
        assert config.size_min == 0.5
        assert config.size_max == 2.0
        assert config.safe_styles["position"] is True
        assert config.safe_styles["color"] is True
        assert config.safe_require["physics"] is True

    def test_interlock_applied_after_merge(self) -> None:
        config = build_config({"allow": {"fontsize": "safe"}, "safeStyles": {"fontSize": True}})
        assert config.safe_styles["fontSize"] is False

    def test_overrides_on_custom_base(self) -> None:
        base = build_config({"allow": {"URLs": "all"}})
        config = build_config({"allow": {"classes": "none"}}, base=base)
        assert config.level(AttributeKind.URL) is AllowLevel.ALL
        assert config.level(AttributeKind.CLASS) is AllowLevel.NONE

    def test_unknown_options_are_ignored_and_logged(self) -> None:
        with self.assertLogs("mathsafe.config", level="DEBUG") as logs:
            config = build_config({"colour": "red", "allow": {"scripts": "all"}, "safeStyles": "color"})
        assert config == DEFAULT_CONFIG
        output = "\n".join(logs.output)
        assert "colour" in output
        assert "scripts" in output
        assert "safeStyles" in output

    def test_non_mapping_overrides_raise(self) -> None:
        with self.assertRaises(TypeError):
            build_config(["allow"])  # type: ignore[arg-type]

    def test_defaults_are_not_mutated(self) -> None:
        build_config({"safeProtocols": {"javascript": True}, "allow": {"URLs": "none"}})
        assert DEFAULT_CONFIG.safe_protocols["javascript"] is False
        assert DEFAULT_CONFIG.level(AttributeKind.URL) is AllowLevel.SAFE


if __name__ == "__main__":
    unittest.main()
