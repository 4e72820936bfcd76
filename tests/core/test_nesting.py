import pytest

from layout_toolkit.core.nesting import NestingValidator


class TestNestingValidator:
    """Lookup semantics of the placement table."""

    def test_allow_list_membership_decides(self):
        validator = NestingValidator({"ul": ["li"], "tr": ["th", "td"]})
        assert validator.is_valid_nesting("li", "ul") is True
        assert validator.is_valid_nesting("p", "ul") is False
        assert validator.is_valid_nesting("td", "tr") is True

    def test_missing_parent_entry_is_permissive(self):
        validator = NestingValidator({"ul": ["li"]})
        assert validator.is_valid_nesting("anything", "section") is True
        assert validator.allowed_children("section") is None

    def test_empty_allow_list_denies_everything(self):
        validator = NestingValidator({"img": []})
        assert validator.is_valid_nesting("p", "img") is False

    def test_rules_are_read_only(self):
        source = {"ul": ["li"]}
        validator = NestingValidator(source)
        source["ul"].append("p")
        assert validator.is_valid_nesting("p", "ul") is False
        with pytest.raises(TypeError):
            validator.rules["ol"] = frozenset({"li"})  # type: ignore[index]


class TestPackagedRules:
    """The default table shipped in nesting_rules.yml."""

    @pytest.mark.parametrize("child,parent", [
        ("p", "div"),
        ("table", "div"),
        ("li", "ul"),
        ("li", "ol"),
        ("tbody", "table"),
        ("tr", "tbody"),
        ("td", "tr"),
        ("a", "p"),
        ("span", "button"),
    ])
    def test_allowed(self, validator, child, parent):
        assert validator.is_valid_nesting(child, parent) is True

    @pytest.mark.parametrize("child,parent", [
        ("div", "p"),
        ("p", "ul"),
        ("div", "table"),
        ("button", "a"),
        ("li", "div"),
    ])
    def test_rejected(self, validator, child, parent):
        assert validator.is_valid_nesting(child, parent) is False

    def test_unlisted_parent_accepts_anything(self, validator):
        assert validator.is_valid_nesting("div", "card") is True
        assert validator.is_valid_nesting("li", "section") is True

    def test_malformed_entries_are_ignored(self, isolated_config):
        (isolated_config / "nesting_rules.yml").write_text("ul: li\nol: [li]\n", encoding="utf-8")
        validator = NestingValidator.from_config()
        assert validator.allowed_children("ul") is None
        assert validator.allowed_children("ol") == frozenset({"li"})
